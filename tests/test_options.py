import json
import sys
import tempfile
import unittest
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from sqrc.errors import ConfigError  # noqa: E402
from sqrc.modules import ModuleStyle  # noqa: E402
from sqrc.options import (  # noqa: E402
    EyeColor,
    EyeOptions,
    EyeRadius,
    LogoOptions,
    RenderOptions,
    load_options,
)
from sqrc.paint import Gradient, Solid, parse_color, parse_paint  # noqa: E402


class TestDefaults(unittest.TestCase):
    def test_defaults(self):
        opts = RenderOptions()
        self.assertEqual(opts.ecc, "M")
        self.assertEqual(opts.version, 0)
        self.assertEqual(opts.size, 150)
        self.assertEqual(opts.quiet_zone, 10)
        self.assertEqual(opts.module_style, ModuleStyle.SQUARE)
        self.assertEqual(opts.foreground, Solid((0, 0, 0, 255)))
        self.assertEqual(opts.background, (255, 255, 255, 255))
        self.assertEqual(opts.drawable_size, 130)

    def test_loose_values_are_normalised(self):
        opts = RenderOptions(ecc="q", module_style="extra-rounded", foreground="red")
        self.assertEqual(opts.ecc, "Q")
        self.assertEqual(opts.module_style, ModuleStyle.EXTRA_ROUNDED)
        self.assertEqual(opts.foreground, Solid((255, 0, 0, 255)))


class TestValidation(unittest.TestCase):
    def test_rejects(self):
        bad = [
            {"size": 0},
            {"size": -5},
            {"size": 10.5},
            {"quiet_zone": -1},
            {"size": 100, "quiet_zone": 50},
            {"ecc": "X"},
            {"version": 41},
            {"module_style": "hexagon"},
            {"module_scale": 0},
            {"module_scale": 1.5},
            {"foreground": "not-a-colour"},
            {"foreground": {"from": "#000"}},
            {"foreground": {"from": "#000", "to": "#fff", "type": "conic"}},
            {"background": 42},
        ]
        for kwargs in bad:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ConfigError):
                    RenderOptions(**kwargs)

    def test_config_error_is_value_error(self):
        self.assertTrue(issubclass(ConfigError, ValueError))

    def test_logo_rejects(self):
        bad = [
            {"source": ""},
            {"source": None},
            {"source": "x.png", "opacity": 1.5},
            {"source": "x.png", "opacity": -0.1},
            {"source": "x.png", "padding": -2},
            {"source": "x.png", "width": 0},
            {"source": "x.png", "height": -3},
            {"source": "x.png", "style": "star"},
            {"source": 123},
        ]
        for kwargs in bad:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ConfigError):
                    LogoOptions(**kwargs)


class TestFromDict(unittest.TestCase):
    def test_camel_case_keys(self):
        opts = RenderOptions.from_dict({
            "size": 256,
            "quietZone": 12,
            "moduleStyle": "dots",
            "moduleScale": 0.6,
            "logo": {"url": "https://example.com/logo.png", "emptyBackground": True, "padding": 4},
        })
        self.assertEqual(opts.quiet_zone, 12)
        self.assertEqual(opts.module_style, ModuleStyle.DOTS)
        self.assertEqual(opts.module_scale, 0.6)
        self.assertIsInstance(opts.logo, LogoOptions)
        self.assertEqual(opts.logo.source, "https://example.com/logo.png")
        self.assertTrue(opts.logo.empty_background)
        self.assertEqual(opts.logo.opacity, 1.0)

    def test_unknown_key(self):
        with self.assertRaises(ConfigError):
            RenderOptions.from_dict({"sise": 100})

    def test_gradient_foreground(self):
        opts = RenderOptions.from_dict({"foreground": {"from": "#f00", "to": "#00f", "type": "radial"}})
        self.assertEqual(opts.foreground, Gradient((255, 0, 0, 255), (0, 0, 255, 255), "radial", 0.0))

    def test_load_options(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "opts.json"
            path.write_text(json.dumps({"size": 300, "ecc": "H"}))
            opts = load_options(path)
            self.assertEqual((opts.size, opts.ecc), (300, "H"))

            path.write_text("{not json")
            with self.assertRaises(ConfigError):
                load_options(path)

            path.write_text("[1, 2]")
            with self.assertRaises(ConfigError):
                load_options(path)


class TestEyeOptions(unittest.TestCase):
    def test_uniform_radius(self):
        eyes = EyeOptions.from_dict({"radius": 8})
        self.assertEqual(len(eyes.radius), 3)
        self.assertEqual(eyes.radius[0], EyeRadius((8, 8, 8, 8), (8, 8, 8, 8)))
        self.assertIsNone(eyes.color)

    def test_per_corner_radius(self):
        eyes = EyeOptions.from_dict({"radius": [1, 2, 3, 4]})
        self.assertEqual(eyes.radius[2].outer, (1, 2, 3, 4))

    def test_per_zone_radius(self):
        eyes = EyeOptions.from_dict({"radius": [0, {"outer": 10, "inner": 2}, [1, 1, 0, 0]]})
        self.assertEqual(eyes.radius[0], EyeRadius())
        self.assertEqual(eyes.radius[1].outer, (10, 10, 10, 10))
        self.assertEqual(eyes.radius[1].inner, (2, 2, 2, 2))
        self.assertEqual(eyes.radius[2].outer, (1, 1, 0, 0))

    def test_inner_outer_colour(self):
        color = EyeColor.parse({"outer": "#f00", "inner": "#00f"})
        self.assertEqual(color.outer, Solid((255, 0, 0, 255)))
        self.assertEqual(color.inner, Solid((0, 0, 255, 255)))
        with self.assertRaises(ConfigError):
            EyeColor.parse({"outer": "#f00"})

    def test_per_zone_colour(self):
        eyes = EyeOptions.from_dict({"color": ["#f00", "#0f0", {"outer": "#00f", "inner": "#000"}]})
        self.assertEqual(eyes.color[1].outer, Solid((0, 255, 0, 255)))
        self.assertEqual(eyes.color[2].inner, Solid((0, 0, 0, 255)))

    def test_rgb_tuple_is_one_colour(self):
        eyes = EyeOptions.from_dict({"color": (255, 0, 0)})
        self.assertEqual(eyes.color, (EyeColor.parse("#f00"),) * 3)

    def test_bad_radius(self):
        with self.assertRaises(ConfigError):
            EyeOptions.from_dict({"radius": "big"})


class TestPaint(unittest.TestCase):
    def test_parse_color(self):
        self.assertEqual(parse_color("#abc"), (0xAA, 0xBB, 0xCC, 255))
        self.assertEqual(parse_color("#11223344"), (0x11, 0x22, 0x33, 0x44))
        self.assertEqual(parse_color((1, 2, 3)), (1, 2, 3, 255))
        with self.assertRaises(ConfigError):
            parse_color((1, 2, 300))

    def test_parse_paint_passthrough(self):
        g = Gradient((0, 0, 0, 255), (255, 255, 255, 255))
        self.assertIs(parse_paint(g), g)

    def test_gradient_rotation(self):
        g = parse_paint({"from": "#000", "to": "#fff", "rotation": 1.5})
        self.assertEqual(g.kind, "linear")
        self.assertEqual(g.rotation, 1.5)
        with self.assertRaises(ConfigError):
            parse_paint({"from": "#000", "to": "#fff", "rotation": "sideways"})


if __name__ == "__main__":
    unittest.main()
