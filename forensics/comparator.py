"""
File Comparator — positional byte-for-byte diff between two buffers.

There is no alignment step.  Index i of buffer A is only ever compared
with index i of buffer B, so an inserted or deleted byte produces a long
tail of differences rather than a short patch.

Positions past the end of the shorter buffer are reported with the "EOF"
marker on that side and never count as matching bytes.

compare_images() is the visual counterpart for two decodable images: equal
dimensions plus mean RGB closeness, via Pillow.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageChops, ImageStat

from .byteclass import EOF, hex_join, to_hex

logger = logging.getLogger(__name__)

# Context window around a differing byte: 2 before, the byte, 2 after
CONTEXT_BEFORE = 2
CONTEXT_AFTER = 3

# The comparison view keeps this many differences by default
DEFAULT_DIFF_LIMIT = 1000


@dataclass(frozen=True)
class ByteDifference:
    offset: int
    byte1: str              # "4F" or "EOF"
    byte2: str
    context1: str           # "00 01 4F 02 03" (clipped to buffer 1)
    context2: str

    def to_dict(self) -> dict:
        return {
            "offset": self.offset,
            "byte1": self.byte1,
            "byte2": self.byte2,
            "context": {"context1": self.context1, "context2": self.context2},
        }


@dataclass(frozen=True)
class ComparisonResult:
    identical: bool
    similarity: float               # 0.0–100.0
    differences: tuple[ByteDifference, ...]
    total_differences: int

    @property
    def truncated(self) -> bool:
        return self.total_differences > len(self.differences)

    def to_dict(self) -> dict:
        return {
            "identical": self.identical,
            "similarity": round(self.similarity, 2),
            "total_differences": self.total_differences,
            "differences": [d.to_dict() for d in self.differences],
        }


def similarity_percent(a: bytes, b: bytes) -> float:
    """Equal bytes at equal positions over the LONGER length, as a percent."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 100.0
    matching = sum(1 for x, y in zip(a, b) if x == y)
    return matching / longest * 100


def _context(data: bytes, start: int, end: int) -> str:
    return hex_join(data[start:end])


def iter_differences(a: bytes, b: bytes):
    """Yield a ByteDifference for every position where a and b disagree."""
    longest = max(len(a), len(b))
    len_a, len_b = len(a), len(b)
    for i in range(longest):
        byte1 = a[i] if i < len_a else None
        byte2 = b[i] if i < len_b else None
        if byte1 == byte2:
            continue
        start = max(0, i - CONTEXT_BEFORE)
        end = min(longest, i + CONTEXT_AFTER)
        yield ByteDifference(
            offset=i,
            byte1=to_hex(byte1) if byte1 is not None else EOF,
            byte2=to_hex(byte2) if byte2 is not None else EOF,
            context1=_context(a, start, end),
            context2=_context(b, start, end),
        )


def compare(a: bytes, b: bytes,
            max_differences: Optional[int] = None) -> ComparisonResult:
    """Compare two buffers position by position.

    Args:
        a, b: Buffers to compare (byte1 fields refer to `a`).
        max_differences: Keep at most this many ByteDifference records;
            total_differences always counts all of them.

    Returns:
        ComparisonResult
    """
    identical = len(a) == len(b) and a == b
    kept = []
    total = 0
    for diff in iter_differences(a, b):
        total += 1
        if max_differences is None or len(kept) < max_differences:
            kept.append(diff)
    logger.debug("Compared %d vs %d bytes: %d differences", len(a), len(b), total)
    return ComparisonResult(
        identical=identical,
        similarity=similarity_percent(a, b),
        differences=tuple(kept),
        total_differences=total,
    )


def compare_metadata(info1, info2) -> dict:
    """Size/name/type equality and deltas between two FileInfo records."""
    return {
        "size_match": info1.size == info2.size,
        "type_match": info1.mime_type == info2.mime_type,
        "name_match": info1.name == info2.name,
        "size_delta": info2.size - info1.size,
        "time_delta": info2.mtime - info1.mtime,
    }


def fuzzy_hash(buffer: bytes, block_size: int = 64) -> str:
    """Block fingerprint "<block_size>:<digits>" (a rough similarity aid, not ssdeep).

    Each block is folded with 32-bit h*31 + byte and reduced to |h| mod 64.
    """
    block_size = max(1, int(block_size))
    parts = []
    for start in range(0, len(buffer), block_size):
        h = 0
        for byte in buffer[start:start + block_size]:
            h = (h * 31 + byte) & 0xFFFFFFFF
        if h >= 0x80000000:
            h -= 0x100000000
        parts.append(str(abs(h) % 64))
    return f"{block_size}:{''.join(parts)}"


# ══════════════════════════════════════════════════════════════
#  Image similarity
# ══════════════════════════════════════════════════════════════

# (minimum colour similarity, verdict), highest first
_VERDICTS = [
    (90, "Very Similar"),
    (70, "Similar"),
    (50, "Somewhat Similar"),
]


@dataclass(frozen=True)
class ImageComparison:
    dimensions_match: bool
    color_similarity: float     # 0..100, 0 when sizes differ
    similarity: float
    verdict: str

    def to_dict(self) -> dict:
        return {
            "dimensions_match": self.dimensions_match,
            "color_similarity": self.color_similarity,
            "similarity": self.similarity,
            "verdict": self.verdict,
        }


def _verdict(similarity: float) -> str:
    for threshold, label in _VERDICTS:
        if similarity > threshold:
            return label
    return "Different"


def color_similarity(img1, img2) -> float:
    """100 minus the mean per-pixel RGB difference, as a percentage.

    Images of different sizes are not compared pixel-wise and score 0.
    """
    if img1.size != img2.size:
        return 0.0
    diff = ImageChops.difference(img1.convert("RGB"), img2.convert("RGB"))
    mean_diff = sum(ImageStat.Stat(diff).mean) / 3
    return round(100 - mean_diff / 255 * 100, 2)


def compare_images(a: bytes, b: bytes) -> Optional[ImageComparison]:
    """Visual similarity of two image buffers, or None if either won't decode."""
    try:
        with Image.open(io.BytesIO(a)) as img1, Image.open(io.BytesIO(b)) as img2:
            img1.load()
            img2.load()
            dims_match = img1.size == img2.size
            colors = color_similarity(img1, img2)
    except Exception as e:
        logger.debug("Image comparison failed: %s", e)
        return None
    logger.debug("Image comparison: dims %s, colour %.2f%%",
                 "match" if dims_match else "differ", colors)
    return ImageComparison(
        dimensions_match=dims_match,
        color_similarity=colors,
        similarity=colors if dims_match else 0.0,
        verdict=_verdict(colors),
    )
