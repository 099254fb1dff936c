"""
GZIP Compression — pack and unpack evidence buffers with size reporting.

compress() returns the gzip stream together with the before/after sizes
and the space saved; decompress() raises DecompressionError when the input
is not a complete GZIP stream, so a truncated or foreign file is reported
rather than half-read.
"""

from __future__ import annotations

import gzip
import zlib
import logging
from dataclasses import dataclass

from .errors import DecompressionError

logger = logging.getLogger(__name__)

ALGORITHM = "GZIP"
SUFFIX = ".gz"

# Fixed header mtime keeps output identical for identical input
_MTIME = 0


@dataclass(frozen=True)
class CompressionResult:
    data: bytes
    original_size: int
    compressed_size: int
    algorithm: str = ALGORITHM

    @property
    def ratio(self) -> float:
        """Space saved, in percent (negative when the output grew)."""
        if not self.original_size:
            return 0.0
        return (1 - self.compressed_size / self.original_size) * 100

    def to_dict(self) -> dict:
        return {
            "original_size": self.original_size,
            "compressed_size": self.compressed_size,
            "ratio": f"{self.ratio:.2f}%",
            "algorithm": self.algorithm,
        }


def compressed_name(name: str) -> str:
    return name + SUFFIX


def decompressed_name(name: str) -> str:
    """Drop a trailing .gz; other names get a .out suffix."""
    if name.lower().endswith(SUFFIX) and len(name) > len(SUFFIX):
        return name[:-len(SUFFIX)]
    return name + ".out"


def compress(data: bytes, level: int = 9) -> CompressionResult:
    packed = gzip.compress(bytes(data), compresslevel=level, mtime=_MTIME)
    result = CompressionResult(data=packed, original_size=len(data),
                               compressed_size=len(packed))
    logger.debug("Compressed %d → %d bytes (%.2f%%)",
                 result.original_size, result.compressed_size, result.ratio)
    return result


def decompress(data: bytes) -> bytes:
    """Inflate a GZIP stream (multi-member streams are concatenated)."""
    try:
        unpacked = gzip.decompress(bytes(data))
    except (OSError, EOFError, zlib.error) as e:
        logger.debug("Decompression failed (%d bytes): %s", len(data), e)
        raise DecompressionError(str(e)) from e
    logger.debug("Decompressed %d → %d bytes", len(data), len(unpacked))
    return unpacked
