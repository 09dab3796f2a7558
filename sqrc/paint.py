"""Paint values: solid colours and gradients."""

from dataclasses import dataclass

from PIL import ImageColor

from sqrc.errors import ConfigError
from sqrc.geometry import GradientGeometry, gradient_endpoints

GRADIENT_KINDS = ("linear", "radial")


def parse_color(value) -> tuple[int, int, int, int]:
    """Parse a colour string or 3/4-tuple into an RGBA tuple."""
    if isinstance(value, str):
        try:
            rgb = ImageColor.getrgb(value)
        except ValueError as e:
            raise ConfigError(f"invalid colour {value!r}") from e
    elif isinstance(value, (tuple, list)) and len(value) in (3, 4):
        rgb = tuple(int(v) for v in value)
        if any(not 0 <= v <= 255 for v in rgb):
            raise ConfigError(f"colour channel out of range in {value!r}")
    else:
        raise ConfigError(f"invalid colour {value!r}")
    if len(rgb) == 3:
        rgb = (*rgb, 255)
    return rgb


@dataclass(frozen=True)
class Solid:
    color: tuple[int, int, int, int]

    @classmethod
    def of(cls, value) -> "Solid":
        return cls(parse_color(value))


@dataclass(frozen=True)
class Gradient:
    """Two-stop gradient; *rotation* is in radians and only used by linear."""

    start: tuple[int, int, int, int]
    end: tuple[int, int, int, int]
    kind: str = "linear"
    rotation: float = 0.0

    def __post_init__(self):
        if self.kind not in GRADIENT_KINDS:
            raise ConfigError(f"unknown gradient type {self.kind!r}, expected one of {GRADIENT_KINDS}")

    def place(self, x: float, y: float, size: float) -> "PlacedGradient":
        return PlacedGradient(
            gradient_endpoints(self.kind, x, y, size, self.rotation),
            self.start,
            self.end,
        )


@dataclass(frozen=True)
class PlacedGradient:
    """A gradient bound to surface coordinates; what the surface actually paints."""

    geometry: GradientGeometry
    start: tuple[int, int, int, int]
    end: tuple[int, int, int, int]


def parse_paint(value) -> Solid | Gradient:
    """Accept a colour, a ``Solid``/``Gradient``, or a ``{from, to, type, rotation}`` mapping."""
    if isinstance(value, (Solid, Gradient)):
        return value
    if isinstance(value, dict):
        missing = [k for k in ("from", "to") if not value.get(k)]
        if missing:
            raise ConfigError(f"gradient is missing {', '.join(missing)}")
        try:
            rotation = float(value.get("rotation") or 0.0)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid gradient rotation {value.get('rotation')!r}") from e
        return Gradient(
            start=parse_color(value["from"]),
            end=parse_color(value["to"]),
            kind=value.get("type") or value.get("kind") or "linear",
            rotation=rotation,
        )
    return Solid.of(value)


def place_paint(paint: Solid | Gradient, x: float, y: float, size: float) -> Solid | PlacedGradient:
    """Bind *paint* to the box ``(x, y, size)``; solid colours pass through."""
    if isinstance(paint, Gradient):
        return paint.place(x, y, size)
    return paint
