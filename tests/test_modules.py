import math
import sys
import unittest
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from sqrc.encoder import Matrix  # noqa: E402
from sqrc.modules import (  # noqa: E402
    DOT_SCALE,
    ModuleStyle,
    Neighbors,
    circle,
    corner_extra_rounded,
    corner_rotation,
    corner_rounded,
    corners_rounded,
    iter_module_shapes,
    module_shape,
    neighbors,
    paint_modules,
    square,
)
from sqrc.paint import Solid  # noqa: E402
from sqrc.raster import Surface  # noqa: E402


def _matrix(n, dark):
    return Matrix([[(r, c) in dark for c in range(n)] for r in range(n)])


def _bits(left=False, right=False, top=False, bottom=False):
    return Neighbors(left, right, top, bottom)


class TestNeighbors(unittest.TestCase):
    def test_neighbour_bits(self):
        m = _matrix(21, {(10, 10), (10, 9), (11, 10)})
        self.assertEqual(neighbors(m, 10, 10), _bits(left=True, bottom=True))
        self.assertEqual(neighbors(m, 10, 10).count, 2)

    def test_edges_count_as_light(self):
        m = _matrix(21, {(20, 20)})
        self.assertEqual(neighbors(m, 20, 20).count, 0)

    def test_symmetry(self):
        from sqrc.encoder import encode

        m = encode("https://example.com/")
        n = m.module_count
        for row in range(n):
            for col in range(n - 1):
                if m.is_dark(row, col) and m.is_dark(row, col + 1):
                    self.assertTrue(neighbors(m, row, col).right)
                    self.assertTrue(neighbors(m, row, col + 1).left)
                if row + 1 < n and m.is_dark(row, col) and m.is_dark(row + 1, col):
                    self.assertTrue(neighbors(m, row, col).bottom)
                    self.assertTrue(neighbors(m, row + 1, col).top)

    def test_excluded_neighbour_is_light(self):
        m = _matrix(21, {(10, 10), (10, 11)})
        excluded = lambda r, c: (r, c) == (10, 11)  # noqa: E731
        self.assertFalse(neighbors(m, 10, 10, excluded).right)
        self.assertTrue(neighbors(m, 10, 10).right)


class TestCornerRotation(unittest.TestCase):
    def test_adjacent_pairs(self):
        self.assertEqual(corner_rotation(_bits(left=True, top=True)), 90)
        self.assertEqual(corner_rotation(_bits(top=True, right=True)), 180)
        self.assertEqual(corner_rotation(_bits(right=True, bottom=True)), -90)
        self.assertEqual(corner_rotation(_bits(bottom=True, left=True)), 0)

    def test_single_neighbour(self):
        self.assertEqual(corner_rotation(_bits(left=True)), 0)
        self.assertEqual(corner_rotation(_bits(top=True)), 90)
        self.assertEqual(corner_rotation(_bits(right=True)), 180)
        self.assertEqual(corner_rotation(_bits(bottom=True)), -90)


class TestModuleShape(unittest.TestCase):
    def test_dots_default_scale(self):
        path, rotation = module_shape(ModuleStyle.DOTS, _bits(), 10)
        self.assertEqual(rotation, 0)
        self.assertEqual(path, circle(10, DOT_SCALE))
        self.assertAlmostEqual(path.commands[0].args[2], 10 * 0.75 / 2)

    def test_dots_and_square_honour_scale(self):
        self.assertEqual(module_shape(ModuleStyle.DOTS, _bits(), 10, 0.5)[0], circle(10, 0.5))
        self.assertEqual(module_shape(ModuleStyle.SQUARE, _bits(), 10, 0.5)[0], square(10, 0.5))
        self.assertEqual(module_shape(ModuleStyle.SQUARE, _bits(), 10)[0], square(10, 1.0))

    def test_rounded_isolated_is_circle(self):
        self.assertEqual(module_shape(ModuleStyle.ROUNDED, _bits(), 10), (circle(10), 0))

    def test_rounded_straight_or_crowded_is_square(self):
        for bits in (_bits(left=True, right=True), _bits(top=True, bottom=True),
                     _bits(left=True, top=True, right=True)):
            self.assertEqual(module_shape(ModuleStyle.ROUNDED, bits, 10), (square(10), 0))

    def test_rounded_corner(self):
        path, rotation = module_shape(ModuleStyle.ROUNDED, _bits(top=True), 10)
        self.assertEqual(path, corner_rounded(10))
        self.assertEqual(rotation, 90)

    def test_extra_rounded_corner(self):
        path, rotation = module_shape(ModuleStyle.EXTRA_ROUNDED, _bits(right=True, bottom=True), 10)
        self.assertEqual(path, corner_extra_rounded(10))
        self.assertEqual(rotation, -90)

    def test_classy(self):
        self.assertEqual(module_shape(ModuleStyle.CLASSY, _bits(), 10), (corners_rounded(10), 90))
        self.assertEqual(module_shape(ModuleStyle.CLASSY, _bits(right=True), 10), (corner_rounded(10), -90))
        self.assertEqual(module_shape(ModuleStyle.CLASSY, _bits(left=True), 10), (corner_rounded(10), 90))
        self.assertEqual(module_shape(ModuleStyle.CLASSY, _bits(left=True, right=True), 10), (square(10), 0))

    def test_classy_ignores_scale(self):
        self.assertEqual(module_shape(ModuleStyle.CLASSY, _bits(), 10, 0.5)[0], corners_rounded(10))


class TestIterModuleShapes(unittest.TestCase):
    def test_finder_zones_are_skipped(self):
        m = Matrix([[True] * 21 for _ in range(21)])
        shapes = list(iter_module_shapes(m, ModuleStyle.SQUARE, 10))
        self.assertEqual(len(shapes), 21 * 21 - 3 * 49)
        cells = {(s.row, s.col) for s in shapes}
        self.assertNotIn((6, 6), cells)
        self.assertIn((7, 7), cells)
        self.assertNotIn((14, 0), cells)

    def test_excluded_cells_are_skipped(self):
        m = _matrix(21, {(10, 10), (10, 11)})
        excluded = lambda r, c: (r, c) == (10, 10)  # noqa: E731
        shapes = list(iter_module_shapes(m, ModuleStyle.ROUNDED, 10, excluded=excluded))
        self.assertEqual([(s.row, s.col) for s in shapes], [(10, 11)])
        # its only neighbour is hidden, so it renders as an isolated dot
        self.assertEqual(shapes[0].path, circle(10))


class TestPaintModules(unittest.TestCase):
    def _paint(self, rotation):
        from sqrc.modules import ModuleShape

        surface = Surface(10, 10)
        surface.begin_path()
        shape = ModuleShape(0, 0, corner_extra_rounded(10), rotation)
        self.assertEqual(paint_modules(surface, [shape], 10, 0), 1)
        surface.fill(Solid((0, 0, 0, 255)))
        return surface.to_image()

    def test_unrotated_quarter_disc_sits_bottom_left(self):
        img = self._paint(0)
        self.assertEqual(img.getpixel((1, 8))[3], 255)
        self.assertEqual(img.getpixel((9, 0))[3], 0)

    def test_half_turn_moves_it_top_right(self):
        img = self._paint(180)
        self.assertEqual(img.getpixel((9, 0))[3], 255)
        self.assertEqual(img.getpixel((0, 9))[3], 0)

    def test_offset_and_cell_placement(self):
        from sqrc.modules import ModuleShape

        surface = Surface(40, 40)
        surface.begin_path()
        paint_modules(surface, [ModuleShape(1, 2, square(10), 0)], 10, 5)
        surface.fill(Solid((0, 0, 0, 255)))
        img = surface.to_image()
        self.assertEqual(img.getpixel((30, 20))[3], 255)
        self.assertEqual(img.getpixel((24, 20))[3], 0)
        self.assertEqual(img.getpixel((30, 14))[3], 0)


if __name__ == "__main__":
    unittest.main()
