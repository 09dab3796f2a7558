"""Scan verification: decode a rendered QR image with OpenCV."""

import time
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image

from sqrc.logging import audit, get_logger, trace

log = get_logger("verify")

DECODER = "opencv"


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = DECODER
    error: str | None = None


def _flatten(image: Image.Image) -> np.ndarray:
    # flatten onto white before dropping alpha
    if image.mode in ("RGBA", "LA", "P"):
        rgba = image.convert("RGBA")
        base = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        image = Image.alpha_composite(base, rgba)
    return cv2.cvtColor(np.array(image.convert("RGB")), cv2.COLOR_RGB2GRAY)


@trace
def scan(image: Image.Image, expected_data: str | None = None) -> ScanResult:
    """Decode *image* with OpenCV's ``QRCodeDetector``.

    A decode that does not match *expected_data* counts as a failure.
    """
    start = time.perf_counter()
    try:
        gray = _flatten(image)
        data, _points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    except cv2.error as e:
        elapsed = (time.perf_counter() - start) * 1000
        audit("scan.error", logger=log, decoder=DECODER, error=str(e), time_ms=round(elapsed, 1))
        return ScanResult(success=False, decode_time_ms=elapsed, error=str(e))
    elapsed = (time.perf_counter() - start) * 1000

    if not data:
        result = ScanResult(success=False, decode_time_ms=elapsed, error="No QR code detected")
    elif expected_data is not None and data != expected_data:
        result = ScanResult(
            success=False, decoded_data=data, decode_time_ms=elapsed,
            error=f"Data mismatch: got '{data}', expected '{expected_data}'",
        )
    else:
        result = ScanResult(success=True, decoded_data=data, decode_time_ms=elapsed)

    audit(
        "scan.verified", logger=log, decoder=DECODER, success=result.success,
        time_ms=round(elapsed, 1), data=(data or "")[:80], error=result.error,
    )
    return result
