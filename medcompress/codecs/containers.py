"""
Intermediate containers handed to external encoders.

PGX is a minimal raw-sample format read by OpenJPEG: a one-line ASCII
header followed by the samples. The flat raw container used for OpenJPH
has no header at all.
"""

from pathlib import Path
import numpy as np

BIG_ENDIAN = "ML"
LITTLE_ENDIAN = "LM"


def pgx_header(width: int, height: int, bit_depth: int, signed: bool = False, endianness: str = BIG_ENDIAN) -> bytes:
    """Build a PGX header line: `PG <endianness> <sign> <bitdepth> <width> <height>\\r\\n`."""
    if endianness not in (BIG_ENDIAN, LITTLE_ENDIAN):
        raise ValueError(f"Unknown PGX endianness tag: {endianness}")
    sign = "-" if signed else "+"
    return f"PG {endianness} {sign} {bit_depth} {width} {height}\r\n".encode("ascii")


def encode_pgx(pixels: np.ndarray, width: int, height: int, endianness: str = BIG_ENDIAN) -> bytes:
    """
    Serialize unsigned samples into a PGX container.
    
    The bit depth follows the sample dtype (8 or 16); multi-byte samples
    are written in the byte order named by the header.
    """
    pixels = np.asarray(pixels)
    if pixels.size != width * height:
        raise ValueError(f"Expected {width * height} samples, got {pixels.size}")
    
    bit_depth = pixels.dtype.itemsize * 8
    order = ">" if endianness == BIG_ENDIAN else "<"
    samples = pixels.astype(f"{order}u{pixels.dtype.itemsize}", copy=False)
    return pgx_header(width, height, bit_depth, endianness=endianness) + samples.tobytes()


def encode_raw(pixels: np.ndarray, width: int, height: int) -> bytes:
    """Serialize samples as headerless little-endian raw data."""
    pixels = np.asarray(pixels)
    if pixels.size != width * height:
        raise ValueError(f"Expected {width * height} samples, got {pixels.size}")
    return pixels.astype(f"<u{pixels.dtype.itemsize}", copy=False).tobytes()


def write_container(path: Path, payload: bytes) -> Path:
    path = Path(path)
    path.write_bytes(payload)
    return path
