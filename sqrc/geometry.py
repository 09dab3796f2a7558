"""Geometry helpers: path commands, cell conversion, rounded squares, gradient axes."""

import math
from collections import namedtuple
from dataclasses import dataclass

PathCommand = namedtuple("PathCommand", ["op", "args"])


class Path:
    """An ordered list of drawing commands, independent of any surface.

    Coordinates are in whatever space the consumer is in when the path is
    appended (module shapes are built around the cell centre at ``(0, 0)``).
    """

    __slots__ = ("commands",)

    def __init__(self, commands=()):
        self.commands = list(commands)

    def _add(self, op, *args):
        self.commands.append(PathCommand(op, tuple(args)))
        return self

    def move_to(self, x, y):
        return self._add("move_to", x, y)

    def line_to(self, x, y):
        return self._add("line_to", x, y)

    def quad_to(self, cx, cy, x, y):
        return self._add("quad_to", cx, cy, x, y)

    def arc(self, cx, cy, radius, start, end):
        """Clockwise (y-down) arc; joins the current point with a line like canvas ``arc``."""
        return self._add("arc", cx, cy, radius, start, end)

    def ellipse(self, cx, cy, rx, ry):
        return self._add("ellipse", cx, cy, rx, ry)

    def rect(self, x, y, w, h):
        return self._add("rect", x, y, w, h)

    def close(self):
        return self._add("close")

    def ops(self) -> list[str]:
        return [c.op for c in self.commands]

    def __iter__(self):
        return iter(self.commands)

    def __len__(self):
        return len(self.commands)

    def __eq__(self, other):
        if not isinstance(other, Path):
            return NotImplemented
        return self.commands == other.commands

    def __repr__(self):
        return f"Path({self.ops()})"


def pixels_to_cells(pixel_length: float, cell_size: float) -> float:
    return pixel_length / cell_size


def clamp_radius(radius: float, size: float) -> float:
    """Clamp a corner radius to ``[0, size / 2]``."""
    return max(0.0, min(radius, size / 2))


def expand_radii(radii) -> tuple[float, float, float, float]:
    """Normalise a scalar or 4-sequence to (top-left, top-right, bottom-right, bottom-left)."""
    if isinstance(radii, (int, float)):
        return (radii, radii, radii, radii)
    values = tuple(radii)
    if len(values) != 4:
        raise ValueError(f"expected 4 corner radii, got {len(values)}")
    return values


def effective_radii(radii, size: float) -> tuple[float, float, float, float]:
    return tuple(clamp_radius(r, size) for r in expand_radii(radii))


def rounded_square_path(line_width: float, x: float, y: float, size: float, radii) -> Path:
    """Closed outline of a square whose stroke sits flush inside ``(x, y, size)``.

    A corner with a radius of exactly zero is a plain miter; no curve is
    emitted for it.
    """
    x += line_width / 2
    y += line_width / 2
    size -= line_width

    r_tl, r_tr, r_br, r_bl = effective_radii(radii, size)

    path = Path()
    path.move_to(x + r_tl, y)
    path.line_to(x + size - r_tr, y)
    if r_tr:
        path.quad_to(x + size, y, x + size, y + r_tr)
    path.line_to(x + size, y + size - r_br)
    if r_br:
        path.quad_to(x + size, y + size, x + size - r_br, y + size)
    path.line_to(x + r_bl, y + size)
    if r_bl:
        path.quad_to(x, y + size, x, y + size - r_bl)
    path.line_to(x, y + r_tl)
    if r_tl:
        path.quad_to(x, y, x + r_tl, y)
    path.close()
    return path


def draw_rounded_square(surface, line_width, x, y, size, radii, paint, fill: bool):
    """Stroke (and optionally fill) a rounded square on *surface*."""
    path = rounded_square_path(line_width, x, y, size, radii)
    surface.begin_path()
    surface.append_path(path)
    surface.stroke(paint, line_width)
    if fill:
        surface.fill(paint)


# ---------------------------------------------------------------------------
# Gradient geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GradientGeometry:
    """Resolved gradient placement in surface coordinates.

    Linear gradients use ``(x0, y0) -> (x1, y1)``; radial gradients use two
    concentric circles centred on ``(x0, y0)`` with radii ``r0`` and ``r1``.
    """

    kind: str
    x0: float
    y0: float
    x1: float
    y1: float
    r0: float = 0.0
    r1: float = 0.0


_TWO_PI = 2 * math.pi


def gradient_endpoints(kind: str, x: float, y: float, size: float, rotation: float = 0.0) -> GradientGeometry:
    """Place a gradient over the square box ``(x, y, size)``.

    For ``linear`` the axis passes through the box centre, rotated by
    *rotation* radians, and ends on the box edges.
    """
    cx = x + size / 2
    cy = y + size / 2
    half = size / 2

    if kind == "radial":
        return GradientGeometry("radial", cx, cy, cx, cy, 0.0, half)

    rotation = math.fmod(rotation, _TWO_PI)
    positive = math.fmod(rotation + _TWO_PI, _TWO_PI)

    if positive <= 0.25 * math.pi or positive > 1.75 * math.pi:
        dx, dy = -half, -half * math.tan(rotation)
    elif positive <= 0.75 * math.pi:
        dx, dy = -half / math.tan(rotation), -half
    elif positive <= 1.25 * math.pi:
        dx, dy = half, half * math.tan(rotation)
    else:
        dx, dy = half / math.tan(rotation), half

    return GradientGeometry("linear", cx + dx, cy + dy, cx - dx, cy - dy)
