"""Module classifier: neighbour analysis and per-style module shapes.

Every shape is a :class:`~sqrc.geometry.Path` centred on ``(0, 0)`` plus a
rotation in degrees (clockwise, y pointing down). The caller translates to
the cell centre and rotates before appending the path.
"""

import math
from collections import namedtuple
from enum import Enum

from sqrc.encoder import in_finder_zone
from sqrc.geometry import Path

DOT_SCALE = 0.75

HALF_PI = math.pi / 2


class ModuleStyle(Enum):
    SQUARE = "square"
    DOTS = "dots"
    ROUNDED = "rounded"
    EXTRA_ROUNDED = "extraRounded"
    CLASSY = "classy"


STYLE_ALIASES = {
    "square": ModuleStyle.SQUARE,
    "dot": ModuleStyle.DOTS,
    "dots": ModuleStyle.DOTS,
    "rounded": ModuleStyle.ROUNDED,
    "extraRounded": ModuleStyle.EXTRA_ROUNDED,
    "extra-rounded": ModuleStyle.EXTRA_ROUNDED,
    "extra_rounded": ModuleStyle.EXTRA_ROUNDED,
    "classy": ModuleStyle.CLASSY,
}


class Neighbors(namedtuple("Neighbors", ["left", "right", "top", "bottom"])):
    """Which of the four adjacent cells are dark and not excluded."""

    __slots__ = ()

    @property
    def count(self) -> int:
        return sum(self)


ModuleShape = namedtuple("ModuleShape", ["row", "col", "path", "rotation"])


def is_drawn_dark(matrix, row: int, col: int, excluded=None) -> bool:
    """Dark as far as drawing is concerned: in range, dark, and not excluded."""
    n = matrix.module_count
    if not (0 <= row < n and 0 <= col < n):
        return False
    if excluded is not None and excluded(row, col):
        return False
    return matrix.is_dark(row, col)


def neighbors(matrix, row: int, col: int, excluded=None) -> Neighbors:
    return Neighbors(
        left=is_drawn_dark(matrix, row, col - 1, excluded),
        right=is_drawn_dark(matrix, row, col + 1, excluded),
        top=is_drawn_dark(matrix, row - 1, col, excluded),
        bottom=is_drawn_dark(matrix, row + 1, col, excluded),
    )


# ---------------------------------------------------------------------------
# Shape primitives (local coordinates, cell centred on the origin)
# ---------------------------------------------------------------------------

def circle(size: float, scale: float = 1.0) -> Path:
    return Path().arc(0, 0, size * scale / 2, 0, 2 * math.pi)


def square(size: float, scale: float = 1.0) -> Path:
    s = size * scale
    return Path().rect(-s / 2, -s / 2, s, s)


def corner_rounded(size: float) -> Path:
    """Cell with its top-right corner rounded by a half-cell radius."""
    h = size / 2
    return (Path()
            .arc(0, 0, h, -HALF_PI, 0)
            .line_to(h, h)
            .line_to(-h, h)
            .line_to(-h, -h)
            .line_to(0, -h)
            .close())


def corner_extra_rounded(size: float) -> Path:
    """Quarter disc of radius *size* centred on the bottom-left corner."""
    h = size / 2
    return (Path()
            .arc(-h, h, size, -HALF_PI, 0)
            .line_to(-h, h)
            .line_to(-h, -h)
            .close())


def corners_rounded(size: float) -> Path:
    """Cell with its top-right and bottom-left corners rounded."""
    h = size / 2
    return (Path()
            .arc(0, 0, h, -HALF_PI, 0)
            .line_to(h, h)
            .line_to(0, h)
            .arc(0, 0, h, HALF_PI, math.pi)
            .line_to(-h, -h)
            .line_to(0, -h)
            .close())


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def corner_rotation(bits: Neighbors) -> int:
    """Rotation that turns the top-right rounded corner away from the neighbours.

    Used for exactly one neighbour, or two adjacent ones.
    """
    if bits.count == 2:
        if bits.left and bits.top:
            return 90
        if bits.top and bits.right:
            return 180
        if bits.right and bits.bottom:
            return -90
        return 0
    if bits.top:
        return 90
    if bits.right:
        return 180
    if bits.bottom:
        return -90
    return 0


def _is_straight_or_crowded(bits: Neighbors) -> bool:
    return bits.count > 2 or (bits.left and bits.right) or (bits.top and bits.bottom)


def module_shape(style: ModuleStyle, bits: Neighbors, size: float,
                 scale: float | None = None) -> tuple[Path, int]:
    """Pick the path and rotation (degrees) for one dark module."""
    if style is ModuleStyle.DOTS:
        return circle(size, scale or DOT_SCALE), 0

    if style is ModuleStyle.SQUARE:
        return square(size, scale or 1.0), 0

    if style in (ModuleStyle.ROUNDED, ModuleStyle.EXTRA_ROUNDED):
        if bits.count == 0:
            return circle(size), 0
        if _is_straight_or_crowded(bits):
            return square(size), 0
        corner = corner_rounded if style is ModuleStyle.ROUNDED else corner_extra_rounded
        return corner(size), corner_rotation(bits)

    if style is ModuleStyle.CLASSY:
        if bits.count == 0:
            return corners_rounded(size), 90
        if not bits.left and not bits.top:
            return corner_rounded(size), -90
        if not bits.right and not bits.bottom:
            return corner_rounded(size), 90
        return square(size), 0

    raise ValueError(f"unknown module style {style!r}")


def iter_module_shapes(matrix, style: ModuleStyle, cell_size: float,
                       scale: float | None = None, excluded=None):
    """Yield a :class:`ModuleShape` for every dark module outside the finder zones.

    *excluded* is an optional ``(row, col) -> bool`` predicate; excluded cells
    are skipped and never count as neighbours.
    """
    n = matrix.module_count
    for row in range(n):
        for col in range(n):
            if in_finder_zone(row, col, n):
                continue
            if not is_drawn_dark(matrix, row, col, excluded):
                continue
            bits = neighbors(matrix, row, col, excluded)
            path, rotation = module_shape(style, bits, cell_size, scale)
            yield ModuleShape(row, col, path, rotation)


def paint_modules(surface, shapes, cell_size: float, offset: float) -> int:
    """Append every shape to the surface's current path; returns how many."""
    count = 0
    for shape in shapes:
        cx = shape.col * cell_size + offset + cell_size / 2
        cy = shape.row * cell_size + offset + cell_size / 2
        with surface.transformed(cx, cy, math.radians(shape.rotation)):
            surface.append_path(shape.path)
        count += 1
    return count
