"""Logo compositing: footprint metrics, module exclusion zone, load and overlay."""

import io
from dataclasses import dataclass
from pathlib import Path

import requests
from PIL import Image, UnidentifiedImageError

from sqrc.errors import LogoLoadError
from sqrc.geometry import pixels_to_cells
from sqrc.logging import audit, get_logger, trace
from sqrc.options import LogoOptions
from sqrc.paint import Solid

log = get_logger("logo")

DEFAULT_COVERAGE = 0.2
EXCLUSION_MARGIN_CELLS = 1
FETCH_TIMEOUT = 15.0


# ---------------------------------------------------------------------------
# Metrics & exclusion zone
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LogoMetrics:
    """Logo footprint inside the module field (coordinates exclude the quiet zone)."""

    width: float
    height: float
    x: float
    y: float
    padding: float = 0.0

    @classmethod
    def compute(cls, logo: LogoOptions | None, drawable_size: float) -> "LogoMetrics":
        """Centre the logo; width defaults to 20% of the field, height to the width."""
        width = logo.width if logo and logo.width else drawable_size * DEFAULT_COVERAGE
        height = logo.height if logo and logo.height else width
        padding = logo.padding if logo else 0.0
        return cls(
            width=width,
            height=height,
            x=(drawable_size - width) / 2,
            y=(drawable_size - height) / 2,
            padding=padding,
        )

    @property
    def padded_width(self) -> float:
        return self.width + 2 * self.padding

    @property
    def padded_height(self) -> float:
        return self.height + 2 * self.padding

    @property
    def padded_x(self) -> float:
        return self.x - self.padding

    @property
    def padded_y(self) -> float:
        return self.y - self.padding

    def excludes(self, row: int, col: int, cell_size: float) -> bool:
        """True when the cell overlaps the logo footprint grown by one cell per side.

        Works in fractional cell units, so a logo that starts part-way into
        a cell still keeps a full cell of clearance on every side.
        """
        m = EXCLUSION_MARGIN_CELLS
        first_col = pixels_to_cells(self.x, cell_size)
        first_row = pixels_to_cells(self.y, cell_size)
        end_col = first_col + pixels_to_cells(self.width, cell_size)
        end_row = first_row + pixels_to_cells(self.height, cell_size)
        # cell c spans [c, c + 1)
        return (
            first_row - m - 1 < row < end_row + m
            and first_col - m - 1 < col < end_col + m
        )

    def exclusion(self, cell_size: float):
        """``(row, col) -> bool`` predicate for the module classifier."""
        return lambda row, col: self.excludes(row, col, cell_size)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _decode(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


@trace
def load_logo_image(source, timeout: float = FETCH_TIMEOUT) -> Image.Image:
    """Fetch and decode a logo into an RGBA image.

    Args:
        source: http(s) URL, filesystem path, encoded bytes, or a PIL image.
        timeout: Seconds allowed for an HTTP fetch.

    Raises:
        LogoLoadError: the logo could not be fetched or decoded.
    """
    label = str(source) if isinstance(source, (str, Path)) else f"<{type(source).__name__}>"
    try:
        if isinstance(source, Image.Image):
            img = source
        elif isinstance(source, (bytes, bytearray)):
            img = _decode(bytes(source))
        elif isinstance(source, str) and source.startswith(("http://", "https://")):
            resp = requests.get(source, timeout=timeout)
            resp.raise_for_status()
            img = _decode(resp.content)
        else:
            img = Image.open(source)
            img.load()
    except (requests.RequestException, UnidentifiedImageError,
            Image.DecompressionBombError, OSError) as e:
        audit("logo.load_failed", logger=log, source=label, error=str(e))
        raise LogoLoadError(label, str(e)) from e

    rgba = img.convert("RGBA")
    audit("logo.loaded", logger=log, source=label, size=f"{rgba.width}x{rgba.height}")
    return rgba


# ---------------------------------------------------------------------------
# Compositing
# ---------------------------------------------------------------------------

@trace
def composite_logo(
    surface,
    logo: LogoOptions,
    metrics: LogoMetrics,
    image: Image.Image,
    quiet_zone: float,
    background: tuple[int, ...],
) -> None:
    """Paint the padding shape in the background colour, then the logo over it.

    With ``style="circle"`` the padding is an ellipse inscribed in the padded
    box and the logo is clipped to the ellipse inscribed in its own footprint.
    """
    if metrics.padding > 0:
        px = metrics.padded_x + quiet_zone
        py = metrics.padded_y + quiet_zone
        pw, ph = metrics.padded_width, metrics.padded_height
        surface.begin_path()
        if logo.style == "circle":
            surface.ellipse(px + pw / 2, py + ph / 2, pw / 2, ph / 2)
        else:
            surface.rect(px, py, pw, ph)
        surface.fill(Solid(tuple(background)))

    x = metrics.x + quiet_zone
    y = metrics.y + quiet_zone
    with surface.saved():
        if logo.style == "circle":
            surface.begin_path()
            surface.ellipse(x + metrics.width / 2, y + metrics.height / 2,
                            metrics.width / 2, metrics.height / 2)
            surface.clip()
        surface.draw_image(image, x, y, metrics.width, metrics.height, opacity=logo.opacity)

    audit(
        "logo.composited", logger=log,
        logo_size=f"{metrics.width:g}x{metrics.height:g}",
        offset=f"{x:g},{y:g}",
        padding=metrics.padding,
        style=logo.style,
        opacity=logo.opacity,
    )
