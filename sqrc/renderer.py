"""Frame orchestrator: background, modules, eyes, logo, PNG."""

import asyncio
from enum import Enum
from pathlib import Path

from PIL import Image

from sqrc.encoder import Matrix, encode
from sqrc.errors import ConfigError
from sqrc.eyes import draw_eyes, resolve_eyes
from sqrc.logging import audit, debug_event, get_logger, trace
from sqrc.logo import LogoMetrics, composite_logo, load_logo_image
from sqrc.modules import iter_module_shapes, paint_modules
from sqrc.options import RenderOptions
from sqrc.paint import Solid, place_paint
from sqrc.raster import Surface

log = get_logger("renderer")


class RenderState(Enum):
    INITIALIZED = 0
    BACKGROUND_PAINTED = 1
    MODULES_PAINTED = 2
    EYES_PAINTED = 3
    LOGO_COMPOSITED = 4
    FINALIZED = 5


class _Frame:
    """One render pass: the surface it owns and how far it has got."""

    def __init__(self, size: int):
        self.surface = Surface(size, size)
        self.state = RenderState.INITIALIZED

    def advance(self, state: RenderState):
        if state.value <= self.state.value:
            raise RuntimeError(f"cannot move from {self.state.name} to {state.name}")
        debug_event("render.state", logger=log, **{"from": self.state.name, "to": state.name})
        self.state = state


class QRCode:
    """A styled QR code for *content*.

    Encoding and option validation happen here, so a bad configuration fails
    before anything is drawn. :meth:`render` can be called any number of
    times and always produces the same bytes.

    Example:
        >>> png = QRCode("https://example.com/", {"moduleStyle": "dots", "size": 256}).render()
    """

    def __init__(self, content: str, options: RenderOptions | dict | None = None, **overrides):
        if options is None:
            options = RenderOptions(**overrides)
        elif isinstance(options, dict):
            options = RenderOptions.from_dict({**options, **overrides})
        elif overrides:
            raise TypeError("keyword overrides cannot be combined with a RenderOptions instance")

        self.content = content
        self.options = options
        self.matrix: Matrix = encode(content, ecc=options.ecc, version=options.version)

        n = self.matrix.module_count
        self.cell_size = options.drawable_size / n
        if self.cell_size <= 0:
            raise ConfigError(f"no room for {n} modules in {options.drawable_size}px")

        self.logo_metrics = LogoMetrics.compute(options.logo, options.drawable_size)
        self.eyes = resolve_eyes(options, n)

    @property
    def field_box(self) -> tuple[float, float, float]:
        """``(x, y, size)`` of the module field on the surface."""
        qz = self.options.quiet_zone
        return (qz, qz, self.matrix.module_count * self.cell_size)

    def exclusion(self):
        """Predicate for cells hidden under the logo, or None when nothing is excluded."""
        logo = self.options.logo
        if logo is None or not logo.empty_background:
            return None
        return self.logo_metrics.exclusion(self.cell_size)

    def module_shapes(self) -> list:
        opts = self.options
        return list(iter_module_shapes(
            self.matrix, opts.module_style, self.cell_size,
            scale=opts.module_scale, excluded=self.exclusion(),
        ))

    # -- pipeline -------------------------------------------------------------

    def _draw_background(self, surface: Surface):
        size = self.options.size
        surface.fill_rect(0, 0, size, size, Solid(self.options.background))

    def _draw_modules(self, surface: Surface) -> int:
        surface.begin_path()
        count = paint_modules(surface, self.module_shapes(), self.cell_size, self.options.quiet_zone)
        surface.fill(place_paint(self.options.foreground, *self.field_box), rule="evenodd")
        return count

    def _draw_logo(self, surface: Surface):
        logo = self.options.logo
        image = load_logo_image(logo.source)
        composite_logo(
            surface, logo, self.logo_metrics, image,
            quiet_zone=self.options.quiet_zone,
            background=self.options.background,
        )

    def _paint(self) -> Surface:
        frame = _Frame(self.options.size)
        surface = frame.surface

        self._draw_background(surface)
        frame.advance(RenderState.BACKGROUND_PAINTED)

        modules = self._draw_modules(surface)
        frame.advance(RenderState.MODULES_PAINTED)

        draw_eyes(surface, self.eyes, self.cell_size, self.options.quiet_zone, self.field_box)
        frame.advance(RenderState.EYES_PAINTED)

        if self.options.logo is not None:
            self._draw_logo(surface)
            frame.advance(RenderState.LOGO_COMPOSITED)

        frame.advance(RenderState.FINALIZED)
        n = self.matrix.module_count
        audit(
            "qr.rendered", logger=log,
            data=self.content[:80], size=f"{surface.width}x{surface.height}",
            modules=f"{n}x{n}", drawn=modules,
            style=self.options.module_style.value,
            cell=round(self.cell_size, 3),
            logo=self.options.logo.label if self.options.logo else None,
        )
        return surface

    @trace
    def render(self) -> bytes:
        """Run the whole pipeline on a fresh surface and return PNG bytes."""
        return self._paint().encode_png()

    @trace
    def render_image(self) -> Image.Image:
        """Like :meth:`render` but returns the RGBA image."""
        return self._paint().to_image()

    async def render_async(self) -> bytes:
        """Render in a worker thread; independent codes may be awaited concurrently."""
        return await asyncio.to_thread(self.render)

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.render())
        return path
