"""QR matrix encoding: payload bytes in, immutable dark/light grid out."""

from enum import Enum

import qrcode
import qrcode.constants

from sqrc.logging import audit, get_logger, trace

log = get_logger("encoder")


class ECCLevel(Enum):
    L = qrcode.constants.ERROR_CORRECT_L  # 7%
    M = qrcode.constants.ERROR_CORRECT_M  # 15%
    Q = qrcode.constants.ERROR_CORRECT_Q  # 25%
    H = qrcode.constants.ERROR_CORRECT_H  # 30%


ECC_NAMES = {"L": ECCLevel.L, "M": ECCLevel.M, "Q": ECCLevel.Q, "H": ECCLevel.H}

FINDER_SIZE = 7


def to_byte_payload(text: str) -> bytes:
    """Transcode *text* to the byte string handed to the encoder.

    UTF-8, keeping lone surrogates as their three-byte forms so that any
    Python string maps to a deterministic byte sequence.
    """
    return text.encode("utf-8", errors="surrogatepass")


class Matrix:
    """Square, read-only grid of QR modules (True = dark)."""

    __slots__ = ("_rows", "version")

    def __init__(self, rows, version: int | None = None):
        self._rows = tuple(tuple(bool(v) for v in row) for row in rows)
        n = len(self._rows)
        if any(len(row) != n for row in self._rows):
            raise ValueError("QR matrix must be square")
        self.version = version

    @property
    def module_count(self) -> int:
        return len(self._rows)

    def is_dark(self, row: int, col: int) -> bool:
        n = len(self._rows)
        if not (0 <= row < n and 0 <= col < n):
            raise IndexError(f"cell ({row}, {col}) outside {n}x{n} matrix")
        return self._rows[row][col]

    def rows(self) -> tuple[tuple[bool, ...], ...]:
        return self._rows

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self._rows == other._rows

    def __hash__(self):
        return hash(self._rows)

    def __repr__(self):
        n = self.module_count
        return f"Matrix({n}x{n}, version={self.version})"


def finder_origins(module_count: int) -> tuple[tuple[int, int], ...]:
    """Top-left (row, col) of the three finder patterns: TL, TR, BL."""
    far = module_count - FINDER_SIZE
    return ((0, 0), (0, far), (far, 0))


def in_finder_zone(row: int, col: int, module_count: int) -> bool:
    return any(
        r0 <= row < r0 + FINDER_SIZE and c0 <= col < c0 + FINDER_SIZE
        for r0, c0 in finder_origins(module_count)
    )


@trace
def encode(payload: str | bytes, ecc: str = "M", version: int | None = None) -> Matrix:
    """Encode *payload* into a module matrix.

    Args:
        payload: Text (transcoded with :func:`to_byte_payload`) or raw bytes.
        ecc: Error correction level: L/M/Q/H.
        version: QR version 1-40; None or 0 picks the smallest that fits.

    Raises:
        qrcode.exceptions.DataOverflowError: payload does not fit the
            requested version. Propagated as-is.
    """
    ecc_level = ECC_NAMES[ecc.upper()]
    data = to_byte_payload(payload) if isinstance(payload, str) else bytes(payload)
    fixed_version = version or None

    qr = qrcode.QRCode(
        version=fixed_version,
        error_correction=ecc_level.value,
        box_size=1,
        border=0,
    )
    qr.add_data(data)
    qr.make(fit=fixed_version is None)

    matrix = Matrix(qr.modules, version=qr.version)
    size = matrix.module_count
    audit("qr.encoded", logger=log,
          bytes=len(data), version=qr.version, size=f"{size}x{size}", ecc=ecc.upper())
    return matrix
