"""Render options: validated, immutable configuration for one QR image.

Options can be built directly (loose values such as colour strings are
normalised in ``__post_init__``) or from a mapping / JSON file using either
the camelCase keys of the JavaScript API (``quietZone``, ``moduleStyle``,
``emptyBackground`` ...) or snake_case.
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path as FsPath
from typing import Any

from PIL import Image

from sqrc.encoder import ECC_NAMES
from sqrc.errors import ConfigError
from sqrc.modules import STYLE_ALIASES, ModuleStyle
from sqrc.paint import Gradient, Solid, parse_color, parse_paint

LOGO_STYLES = ("square", "circle")
DEFAULT_SIZE = 150
DEFAULT_QUIET_ZONE = 10


def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _normalise_keys(mapping: dict) -> dict:
    return {_snake(k): v for k, v in mapping.items()}


def _number(value, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{what} must be a number, got {value!r}")
    return float(value)


# ---------------------------------------------------------------------------
# Eyes
# ---------------------------------------------------------------------------

Radii = tuple[float, float, float, float]


def _radii(value, what: str) -> Radii:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        r = float(value)
        return (r, r, r, r)
    if isinstance(value, (list, tuple)) and len(value) == 4:
        return tuple(_number(v, what) for v in value)
    raise ConfigError(f"{what} must be a number or 4 corner radii, got {value!r}")


@dataclass(frozen=True)
class EyeRadius:
    """Corner radii (top-left, top-right, bottom-right, bottom-left) of both eye boxes."""

    outer: Radii = (0.0, 0.0, 0.0, 0.0)
    inner: Radii = (0.0, 0.0, 0.0, 0.0)

    @classmethod
    def parse(cls, value) -> "EyeRadius":
        """Uniform number, 4 per-corner radii, or an ``{inner, outer}`` mapping."""
        if isinstance(value, EyeRadius):
            return value
        if isinstance(value, dict):
            return cls(
                outer=_radii(value.get("outer") or 0, "eye outer radius"),
                inner=_radii(value.get("inner") or 0, "eye inner radius"),
            )
        radii = _radii(value, "eye radius")
        return cls(outer=radii, inner=radii)


@dataclass(frozen=True)
class EyeColor:
    outer: Solid | Gradient
    inner: Solid | Gradient

    @classmethod
    def parse(cls, value) -> "EyeColor":
        """A single colour, or an ``{inner, outer}`` mapping of colours."""
        if isinstance(value, EyeColor):
            return value
        if isinstance(value, dict) and ("inner" in value or "outer" in value):
            missing = [k for k in ("inner", "outer") if not value.get(k)]
            if missing:
                raise ConfigError(f"eye colour is missing {', '.join(missing)}")
            return cls(outer=parse_paint(value["outer"]), inner=parse_paint(value["inner"]))
        paint = parse_paint(value)
        return cls(outer=paint, inner=paint)


def _is_per_zone(value, scalar_types) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 3
        and not any(isinstance(v, scalar_types) for v in value)
    )


@dataclass(frozen=True)
class EyeOptions:
    """Finder-pattern overrides, one entry per zone (top-left, top-right, bottom-left)."""

    radius: tuple[EyeRadius, EyeRadius, EyeRadius] | None = None
    color: tuple[EyeColor, EyeColor, EyeColor] | None = None

    @classmethod
    def from_dict(cls, mapping: dict) -> "EyeOptions":
        radius = mapping.get("radius")
        color = mapping.get("color")

        if radius is None:
            radii = None
        elif isinstance(radius, (list, tuple)) and len(radius) == 3:
            radii = tuple(EyeRadius.parse(r) for r in radius)
        else:
            radii = (EyeRadius.parse(radius),) * 3

        if not color:
            colors = None
        elif _is_per_zone(color, (int, float)):
            colors = tuple(EyeColor.parse(c) for c in color)
        else:
            colors = (EyeColor.parse(color),) * 3

        return cls(radius=radii, color=colors)


# ---------------------------------------------------------------------------
# Logo
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LogoOptions:
    """Centre logo.

    ``source`` is an http(s) URL, a filesystem path, raw image bytes or a
    decoded PIL image. ``style`` selects the padding shape and, for
    ``circle``, a circular clip of the logo itself.
    """

    source: Any
    width: float | None = None
    height: float | None = None
    padding: float = 0.0
    opacity: float = 1.0
    style: str = "square"
    empty_background: bool = False

    def __post_init__(self):
        if self.source is None or (isinstance(self.source, (str, bytes)) and not self.source):
            raise ConfigError("logo source is required")
        if not isinstance(self.source, (str, bytes, bytearray, FsPath, Image.Image)):
            raise ConfigError(f"unsupported logo source type {type(self.source).__name__}")
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is not None and _number(value, f"logo {name}") <= 0:
                raise ConfigError(f"logo {name} must be positive, got {value!r}")
        if _number(self.padding, "logo padding") < 0:
            raise ConfigError(f"logo padding must be >= 0, got {self.padding!r}")
        if not 0.0 <= _number(self.opacity, "logo opacity") <= 1.0:
            raise ConfigError(f"logo opacity must be within [0, 1], got {self.opacity!r}")
        if self.style not in LOGO_STYLES:
            raise ConfigError(f"logo style must be one of {LOGO_STYLES}, got {self.style!r}")

    @property
    def label(self) -> str:
        if isinstance(self.source, (str, FsPath)):
            return str(self.source)
        return f"<{type(self.source).__name__}>"

    @classmethod
    def from_dict(cls, mapping: dict) -> "LogoOptions":
        opts = _normalise_keys(mapping)
        source = opts.pop("url", None) or opts.pop("source", None)
        opacity = opts.get("opacity")
        return cls(
            source=source,
            width=opts.get("width"),
            height=opts.get("height"),
            padding=opts.get("padding") or 0.0,
            opacity=1.0 if opacity is None else opacity,
            style=opts.get("style") or "square",
            empty_background=bool(opts.get("empty_background", False)),
        )


# ---------------------------------------------------------------------------
# Render options
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderOptions:
    ecc: str = "M"
    version: int = 0
    size: int = DEFAULT_SIZE
    quiet_zone: float = DEFAULT_QUIET_ZONE
    foreground: Any = "#000"
    background: Any = "#fff"
    module_style: Any = ModuleStyle.SQUARE
    module_scale: float | None = None
    eyes: EyeOptions | None = None
    logo: LogoOptions | None = None

    def __post_init__(self):
        set_ = object.__setattr__

        ecc = str(self.ecc).upper()
        if ecc not in ECC_NAMES:
            raise ConfigError(f"ecc must be one of {tuple(ECC_NAMES)}, got {self.ecc!r}")
        set_(self, "ecc", ecc)

        if isinstance(self.version, bool) or not isinstance(self.version, int) or not 0 <= self.version <= 40:
            raise ConfigError(f"version must be 0 (auto) or 1-40, got {self.version!r}")

        size = _number(self.size, "size")
        if size <= 0 or not size.is_integer():
            raise ConfigError(f"size must be a positive whole number of pixels, got {self.size!r}")
        set_(self, "size", int(size))

        quiet_zone = _number(self.quiet_zone, "quiet zone")
        if quiet_zone < 0 or quiet_zone >= size / 2:
            raise ConfigError(f"quiet zone must be within [0, size/2), got {self.quiet_zone!r}")

        set_(self, "foreground", parse_paint(self.foreground))
        set_(self, "background", parse_color(self.background))

        style = self.module_style
        if not isinstance(style, ModuleStyle):
            if style not in STYLE_ALIASES:
                raise ConfigError(f"unknown module style {style!r}")
            set_(self, "module_style", STYLE_ALIASES[style])

        if self.module_scale is not None:
            scale = _number(self.module_scale, "module scale")
            if not 0 < scale <= 1:
                raise ConfigError(f"module scale must be within (0, 1], got {self.module_scale!r}")

        if isinstance(self.eyes, dict):
            set_(self, "eyes", EyeOptions.from_dict(self.eyes))
        if isinstance(self.logo, dict):
            set_(self, "logo", LogoOptions.from_dict(self.logo))

    @property
    def drawable_size(self) -> float:
        """Pixel side of the module field (image size minus both quiet zones)."""
        return self.size - 2 * self.quiet_zone

    @classmethod
    def from_dict(cls, mapping: dict) -> "RenderOptions":
        opts = _normalise_keys(mapping)
        unknown = sorted(set(opts) - set(cls.__dataclass_fields__))
        if unknown:
            raise ConfigError(f"unknown option(s): {', '.join(unknown)}")
        return cls(**{k: v for k, v in opts.items() if v is not None})


def load_options(path: str | FsPath) -> RenderOptions:
    """Read :class:`RenderOptions` from a JSON file."""
    try:
        data = json.loads(FsPath(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a JSON object")
    return RenderOptions.from_dict(data)
