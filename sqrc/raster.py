"""Raster surface: canvas-style paths painted with Pillow and numpy.

Paths are flattened to polygons in device space as they are built (the
current transform applies at construction time, like an HTML canvas).
Fills are scan-converted at SUPERSAMPLE x resolution and box-downscaled for
anti-aliasing; strokes are drawn as per-segment quads plus miter joins.
"""

import io
import math
from contextlib import contextmanager

import numpy as np
from PIL import Image, ImageChops, ImageDraw

from sqrc.geometry import Path
from sqrc.paint import PlacedGradient, Solid

SUPERSAMPLE = 4
MITER_LIMIT = 10.0

_IDENTITY = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


class _SubPath:
    __slots__ = ("points", "closed")

    def __init__(self, start):
        self.points = [start]
        self.closed = False


# ---------------------------------------------------------------------------
# Scan conversion
# ---------------------------------------------------------------------------

def scanline_mask(polygons, width: int, height: int, rule: str = "evenodd") -> np.ndarray:
    """Rasterize implicitly closed polygons into a bool ``(height, width)`` array.

    A pixel is inside when its centre is; crossings are half-open, so two
    polygons sharing an edge neither overlap nor leave a gap.
    """
    edges = [
        np.column_stack([pts, np.roll(pts, -1, axis=0)])
        for pts in polygons
        if len(pts) >= 2
    ]
    inside = np.zeros((height, width), dtype=bool)
    if not edges:
        return inside

    e = np.concatenate(edges)
    x0, y0, x1, y1 = e[:, 0], e[:, 1], e[:, 2], e[:, 3]
    ylo = np.minimum(y0, y1)
    yhi = np.maximum(y0, y1)
    first = np.clip(np.ceil(ylo - 0.5).astype(np.int64), 0, height)
    last = np.clip(np.ceil(yhi - 0.5).astype(np.int64), 0, height)
    counts = np.where(y0 != y1, last - first, 0)
    total = int(counts.sum())
    if total == 0:
        return inside

    idx = np.repeat(np.arange(len(e)), counts)
    offsets = np.arange(total) - np.repeat(np.cumsum(counts) - counts, counts)
    rows = first[idx] + offsets
    t = (rows + 0.5 - y0[idx]) / (y1[idx] - y0[idx])
    xc = x0[idx] + t * (x1[idx] - x0[idx])
    cols = np.clip(np.floor(xc - 0.5).astype(np.int64) + 1, 0, width)

    diff = np.zeros((height, width + 1), dtype=np.int32)
    if rule == "evenodd":
        np.add.at(diff, (rows, cols), 1)
        inside = (np.cumsum(diff, axis=1)[:, :width] & 1).astype(bool)
    else:
        winding = np.where(y1 > y0, 1, -1)[idx]
        np.add.at(diff, (rows, cols), winding)
        inside = np.cumsum(diff, axis=1)[:, :width] != 0
    return inside


def _flatten_quad(p0, p1, p2, n):
    ts = np.linspace(0.0, 1.0, n + 1)[1:]
    u = 1 - ts
    xs = u * u * p0[0] + 2 * u * ts * p1[0] + ts * ts * p2[0]
    ys = u * u * p0[1] + 2 * u * ts * p1[1] + ts * ts * p2[1]
    return list(zip(xs.tolist(), ys.tolist()))


def _segments_for(length_px: float) -> int:
    return max(8, min(256, int(math.ceil(length_px / 2))))


class Surface:
    """A ``width`` x ``height`` RGBA drawing surface.

    Only one render owns a surface; nothing here is thread-safe.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"surface size must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self._image = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        self._matrix = _IDENTITY
        self._clip: Image.Image | None = None
        self._stack: list[tuple] = []
        self._subpaths: list[_SubPath] = []
        self._current: _SubPath | None = None

    # -- state ---------------------------------------------------------------

    def save(self):
        self._stack.append((self._matrix, self._clip))

    def restore(self):
        self._matrix, self._clip = self._stack.pop()

    @contextmanager
    def saved(self):
        self.save()
        try:
            yield self
        finally:
            self.restore()

    @contextmanager
    def transformed(self, dx: float, dy: float, rotation: float = 0.0):
        """Translate to ``(dx, dy)`` and rotate (radians) for the duration of the block."""
        self.save()
        try:
            self.translate(dx, dy)
            if rotation:
                self.rotate(rotation)
            yield self
        finally:
            self.restore()

    def translate(self, tx: float, ty: float):
        a, b, c, d, e, f = self._matrix
        self._matrix = (a, b, c, d, a * tx + c * ty + e, b * tx + d * ty + f)

    def rotate(self, angle: float):
        a, b, c, d, e, f = self._matrix
        cos, sin = math.cos(angle), math.sin(angle)
        self._matrix = (a * cos + c * sin, b * cos + d * sin,
                        c * cos - a * sin, d * cos - b * sin, e, f)

    def scale(self, sx: float, sy: float):
        a, b, c, d, e, f = self._matrix
        self._matrix = (a * sx, b * sx, c * sy, d * sy, e, f)

    def _device(self, x, y):
        a, b, c, d, e, f = self._matrix
        return (a * x + c * y + e, b * x + d * y + f)

    def _device_scale(self) -> float:
        a, b, c, d, _, _ = self._matrix
        return math.sqrt(abs(a * d - b * c))

    # -- path construction ----------------------------------------------------

    def begin_path(self):
        self._subpaths = []
        self._current = None

    def new_sub_path(self):
        self._current = None

    def move_to(self, x, y):
        self._current = _SubPath(self._device(x, y))
        self._subpaths.append(self._current)

    def line_to(self, x, y):
        if self._current is None:
            self.move_to(x, y)
        else:
            self._current.points.append(self._device(x, y))

    def quad_to(self, cx, cy, x, y):
        if self._current is None:
            self.move_to(cx, cy)
        p0 = self._current.points[-1]
        p1 = self._device(cx, cy)
        p2 = self._device(x, y)
        est = math.dist(p0, p1) + math.dist(p1, p2)
        self._current.points.extend(_flatten_quad(p0, p1, p2, _segments_for(est * SUPERSAMPLE)))

    def arc(self, cx, cy, radius, start, end):
        sweep = end - start
        if sweep >= 2 * math.pi:
            sweep = 2 * math.pi
        else:
            sweep = math.fmod(sweep, 2 * math.pi)
            if sweep < 0:
                sweep += 2 * math.pi
        self._elliptic_arc(cx, cy, radius, radius, start, sweep)

    def ellipse(self, cx, cy, rx, ry):
        self._elliptic_arc(cx, cy, rx, ry, 0.0, 2 * math.pi)

    def _elliptic_arc(self, cx, cy, rx, ry, start, sweep):
        length = sweep * max(rx, ry) * self._device_scale() * SUPERSAMPLE
        n = _segments_for(length)
        angles = start + sweep * np.arange(n + 1) / n
        points = [self._device(cx + rx * math.cos(t), cy + ry * math.sin(t)) for t in angles.tolist()]
        if self._current is None:
            self._current = _SubPath(points[0])
            self._subpaths.append(self._current)
        else:
            self._current.points.append(points[0])
        self._current.points.extend(points[1:])

    def rect(self, x, y, w, h):
        self.move_to(x, y)
        self.line_to(x + w, y)
        self.line_to(x + w, y + h)
        self.line_to(x, y + h)
        self.close_path()

    def close_path(self):
        if self._current is None:
            return
        self._current.closed = True
        start = self._current.points[0]
        self._current = _SubPath(start)
        self._subpaths.append(self._current)

    def append_path(self, path: Path):
        """Replay *path* under the current transform as a new sub-path."""
        self.new_sub_path()
        for cmd in path:
            if cmd.op == "close":
                self.close_path()
            else:
                getattr(self, cmd.op)(*cmd.args)

    # -- painting -------------------------------------------------------------

    def _polygons(self):
        return [
            np.asarray(sp.points, dtype=np.float64) * SUPERSAMPLE
            for sp in self._subpaths
            if len(sp.points) >= 3
        ]

    def _coverage(self, rule: str) -> Image.Image:
        """Anti-aliased device-resolution coverage mask of the current path."""
        mask = Image.new("L", (self.width, self.height), 0)
        polygons = self._polygons()
        if not polygons:
            return mask
        allpts = np.concatenate(polygons)
        s = SUPERSAMPLE
        x_lo = max(0, int(math.floor(allpts[:, 0].min() / s)) - 1)
        y_lo = max(0, int(math.floor(allpts[:, 1].min() / s)) - 1)
        x_hi = min(self.width, int(math.ceil(allpts[:, 0].max() / s)) + 1)
        y_hi = min(self.height, int(math.ceil(allpts[:, 1].max() / s)) + 1)
        if x_hi <= x_lo or y_hi <= y_lo:
            return mask

        shift = np.array([x_lo * s, y_lo * s], dtype=np.float64)
        inside = scanline_mask(
            [pts - shift for pts in polygons],
            (x_hi - x_lo) * s, (y_hi - y_lo) * s, rule,
        )
        patch = Image.fromarray(inside.astype(np.uint8) * 255).reduce(s)
        mask.paste(patch, (x_lo, y_lo))
        return mask

    def _stroke_coverage(self, line_width: float) -> Image.Image:
        mask = Image.new("L", (self.width, self.height), 0)
        polylines = [sp for sp in self._subpaths if len(sp.points) >= 2]
        if not polylines:
            return mask
        s = SUPERSAMPLE
        half = line_width * self._device_scale() / 2 * s

        # a miter reaches at most MITER_LIMIT half-widths past its vertex
        allpts = np.concatenate([np.asarray(sp.points, dtype=np.float64) for sp in polylines])
        reach = MITER_LIMIT * half / s
        x_lo = max(0, int(math.floor(allpts[:, 0].min() - reach)) - 1)
        y_lo = max(0, int(math.floor(allpts[:, 1].min() - reach)) - 1)
        x_hi = min(self.width, int(math.ceil(allpts[:, 0].max() + reach)) + 1)
        y_hi = min(self.height, int(math.ceil(allpts[:, 1].max() + reach)) + 1)
        if x_hi <= x_lo or y_hi <= y_lo:
            return mask

        big = Image.new("L", ((x_hi - x_lo) * s, (y_hi - y_lo) * s), 0)
        draw = ImageDraw.Draw(big)
        for sp in polylines:
            pts = [((x - x_lo) * s, (y - y_lo) * s) for x, y in sp.points]
            if sp.closed and len(pts) > 1 and pts[0] == pts[-1]:
                pts.pop()
            # drop repeated points
            clean = [pts[0]] if pts else []
            for p in pts[1:]:
                if p != clean[-1]:
                    clean.append(p)
            if len(clean) < 2:
                continue
            segs = list(zip(clean, clean[1:]))
            if sp.closed:
                segs.append((clean[-1], clean[0]))

            normals = []
            for (ax, ay), (bx, by) in segs:
                length = math.hypot(bx - ax, by - ay)
                nx, ny = -(by - ay) / length * half, (bx - ax) / length * half
                normals.append((nx, ny))
                draw.polygon([(ax + nx, ay + ny), (bx + nx, by + ny),
                              (bx - nx, by - ny), (ax - nx, ay - ny)], fill=255)

            joins = range(len(segs)) if sp.closed else range(1, len(segs))
            for i in joins:
                n1 = normals[i - 1]
                n2 = normals[i]
                vx, vy = segs[i][0]
                _draw_miter(draw, vx, vy, n1, n2, half)

        mask.paste(big.reduce(s), (x_lo, y_lo))
        return mask

    def _composite(self, mask: Image.Image, paint, alpha: float = 1.0):
        if self._clip is not None:
            mask = ImageChops.multiply(mask, self._clip)
        if isinstance(paint, Solid):
            layer = Image.new("RGBA", (self.width, self.height), paint.color[:3] + (255,))
            factor = paint.color[3] / 255 * alpha
        elif isinstance(paint, PlacedGradient):
            layer = _gradient_layer(paint, self.width, self.height)
            factor = alpha
        else:
            raise TypeError(f"unsupported paint {paint!r}")

        coverage = np.asarray(mask, dtype=np.float64) / 255 * factor
        rgba = np.array(layer)
        rgba[..., 3] = np.round(rgba[..., 3] * coverage).astype(np.uint8)
        self._image.alpha_composite(Image.fromarray(rgba))

    def fill(self, paint, rule: str = "nonzero"):
        self._composite(self._coverage(rule), paint)

    def stroke(self, paint, line_width: float):
        self._composite(self._stroke_coverage(line_width), paint)

    def fill_rect(self, x, y, w, h, paint):
        self.begin_path()
        self.rect(x, y, w, h)
        self.fill(paint)

    def clip(self, rule: str = "nonzero"):
        mask = self._coverage(rule)
        self._clip = mask if self._clip is None else ImageChops.multiply(self._clip, mask)

    def draw_image(self, image: Image.Image, x: float, y: float, w: float, h: float, opacity: float = 1.0):
        """Draw *image* scaled into ``(x, y, w, h)`` (translation and scale only)."""
        dx0, dy0 = self._device(x, y)
        dx1, dy1 = self._device(x + w, y + h)
        tw = max(1, int(round(abs(dx1 - dx0))))
        th = max(1, int(round(abs(dy1 - dy0))))
        resized = image.convert("RGBA").resize((tw, th), Image.LANCZOS)

        layer = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        layer.paste(resized, (int(round(min(dx0, dx1))), int(round(min(dy0, dy1)))))
        alpha = layer.getchannel("A")
        if opacity < 1.0:
            alpha = alpha.point(lambda v: int(round(v * opacity)))
        if self._clip is not None:
            alpha = ImageChops.multiply(alpha, self._clip)
        layer.putalpha(alpha)
        self._image.alpha_composite(layer)

    # -- output ---------------------------------------------------------------

    def to_image(self) -> Image.Image:
        return self._image.copy()

    def encode_png(self) -> bytes:
        buf = io.BytesIO()
        self._image.save(buf, format="PNG")
        return buf.getvalue()


def _draw_miter(draw, vx, vy, n1, n2, half):
    dot = (n1[0] * n2[0] + n1[1] * n2[1]) / (half * half)
    cross = n1[0] * n2[1] - n1[1] * n2[0]
    if cross == 0:
        return
    # outer side of the turn is opposite the direction it turns towards
    sign = -1.0 if cross > 0 else 1.0
    a = (vx + sign * n1[0], vy + sign * n1[1])
    b = (vx + sign * n2[0], vy + sign * n2[1])
    if 1 + dot > 1e-9 and math.sqrt(2 / (1 + dot)) <= MITER_LIMIT:
        k = sign / (1 + dot)
        m = (vx + k * (n1[0] + n2[0]), vy + k * (n1[1] + n2[1]))
        draw.polygon([(vx, vy), a, m, b], fill=255)
    else:
        draw.polygon([(vx, vy), a, b], fill=255)


def _gradient_layer(paint: PlacedGradient, width: int, height: int) -> Image.Image:
    g = paint.geometry
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64) + 0.5
    if g.kind == "radial":
        span = g.r1 - g.r0
        dist = np.hypot(xs - g.x0, ys - g.y0)
        t = (dist - g.r0) / span if span > 0 else np.ones_like(dist)
    else:
        dx, dy = g.x1 - g.x0, g.y1 - g.y0
        denom = dx * dx + dy * dy
        if denom == 0:
            t = np.zeros_like(xs)
        else:
            t = ((xs - g.x0) * dx + (ys - g.y0) * dy) / denom
    t = np.clip(t, 0.0, 1.0)[..., None]
    c0 = np.asarray(paint.start, dtype=np.float64)
    c1 = np.asarray(paint.end, dtype=np.float64)
    rgba = np.round(c0 + (c1 - c0) * t).astype(np.uint8)
    return Image.fromarray(rgba)
