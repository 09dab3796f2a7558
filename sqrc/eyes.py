"""Finder-pattern ("eye") rendering: outer ring and inner block per corner."""

import math
from dataclasses import dataclass

from sqrc.encoder import FINDER_SIZE, finder_origins
from sqrc.geometry import draw_rounded_square
from sqrc.options import EyeColor, EyeRadius, RenderOptions
from sqrc.paint import place_paint

INNER_SIZE = 3
INNER_INSET = 2

_NO_RADIUS = EyeRadius()


@dataclass(frozen=True)
class Eye:
    """One finder pattern with its radius and paint fully resolved."""

    row: int
    col: int
    radius: EyeRadius
    color: EyeColor


def resolve_eyes(options: RenderOptions, module_count: int) -> list[Eye]:
    """Resolve per-zone radius and colour once, before any drawing.

    Falls back to zero radius and the foreground paint.
    """
    eyes = options.eyes
    fallback = EyeColor(options.foreground, options.foreground)
    resolved = []
    for i, (row, col) in enumerate(finder_origins(module_count)):
        radius = eyes.radius[i] if eyes and eyes.radius else _NO_RADIUS
        color = eyes.color[i] if eyes and eyes.color else fallback
        resolved.append(Eye(row, col, radius, color))
    return resolved


def draw_eye(surface, eye: Eye, cell_size: float, offset: float, field_box: tuple[float, float, float]):
    """Stroke the 7x7 outer box, then stroke and fill the 3x3 inner box.

    *field_box* ``(x, y, size)`` is the module field; gradients are laid over
    it so eyes and modules share one continuous gradient.
    """
    line_width = math.ceil(cell_size)
    x = eye.col * cell_size + offset
    y = eye.row * cell_size + offset

    draw_rounded_square(
        surface, line_width, x, y, cell_size * FINDER_SIZE, eye.radius.outer,
        place_paint(eye.color.outer, *field_box), fill=False,
    )
    draw_rounded_square(
        surface, line_width,
        x + cell_size * INNER_INSET, y + cell_size * INNER_INSET,
        cell_size * INNER_SIZE, eye.radius.inner,
        place_paint(eye.color.inner, *field_box), fill=True,
    )


def draw_eyes(surface, eyes: list[Eye], cell_size: float, offset: float, field_box) -> None:
    for eye in eyes:
        draw_eye(surface, eye, cell_size, offset, field_box)
