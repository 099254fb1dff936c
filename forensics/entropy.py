"""
Entropy Engine — Shannon entropy over whole buffers and fixed-size blocks.

Block sweep
───────────
The buffer is walked left to right in non-overlapping blocks of
`block_size` bytes; the final block may be shorter.  Each block gets an
entropy value (0.0–8.0) and is classified into a band:

  • "low"        — entropy < 4.0    (text, padding, tables)
  • "medium"     — entropy < 6.0    (structured / mixed data)
  • "high"       — entropy < 7.5    (compressed media, code)
  • "very-high"  — entropy >= 7.5   (encrypted / random / packed)

Consecutive blocks in the same band form a region.  Region counts drive
the summary insights (compressed, repetitive, container).
"""

from __future__ import annotations

import math
import logging
from dataclasses import dataclass, field, asdict
from typing import Iterable

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_SIZE = 256

BAND_LOW = "low"
BAND_MEDIUM = "medium"
BAND_HIGH = "high"
BAND_VERY_HIGH = "very-high"

INSIGHT_COMPRESSED = "File appears to be compressed or encrypted"
INSIGHT_REPETITIVE = "File contains significant repetitive data"
INSIGHT_CONTAINER = "Multiple data types detected - possible container or archive"

# More regions than this means many format transitions
CONTAINER_REGION_THRESHOLD = 10


def shannon_entropy(data: bytes) -> float:
    """Shannon entropy of a byte sequence (0.0–8.0).

    An empty slice has no probability mass at all, so the sum is empty and
    log2(0) is never evaluated; it returns 0.0 instead of NaN.
    """
    if not data:
        return 0.0
    length = len(data)
    counts = [0] * 256
    for b in data:
        counts[b] += 1
    entropy = 0.0
    for c in counts:
        if c > 0:
            p = c / length
            entropy -= p * math.log2(p)
    return entropy


def classify_band(entropy: float) -> str:
    if entropy < 4:
        return BAND_LOW
    if entropy < 6:
        return BAND_MEDIUM
    if entropy < 7.5:
        return BAND_HIGH
    return BAND_VERY_HIGH


@dataclass(frozen=True)
class EntropyBlock:
    offset: int
    entropy: float
    percentage: float       # offset / buffer length * 100


@dataclass(frozen=True)
class EntropyRegion:
    """A maximal run of consecutive blocks sharing one band."""
    type: str
    start_offset: int
    start_percent: float
    end_offset: int         # offset of the run's last block
    end_percent: float
    entropy: float          # entropy of the run's first block


@dataclass(frozen=True)
class EntropyProfile:
    blocks: tuple[EntropyBlock, ...]
    block_size: int
    average: float = 0.0
    maximum: float = 0.0
    minimum: float = 0.0
    regions: tuple[EntropyRegion, ...] = ()
    insights: tuple[str, ...] = ()

    @property
    def total_blocks(self) -> int:
        return len(self.blocks)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["total_blocks"] = self.total_blocks
        return d


@dataclass(frozen=True)
class Heatmap:
    rows: tuple[tuple[int, ...], ...] = field(default_factory=tuple)
    width: int = 64

    @property
    def height(self) -> int:
        return len(self.rows)


# ══════════════════════════════════════════════════════════════
#  Block sweep
# ══════════════════════════════════════════════════════════════

def compute_entropy_profile(buffer: bytes,
                            block_size: int = DEFAULT_BLOCK_SIZE) -> EntropyProfile:
    """Entropy of every `block_size` block plus regions and insights."""
    block_size = max(1, int(block_size))
    length = len(buffer)
    view = memoryview(buffer)
    blocks = []
    for offset in range(0, length, block_size):
        chunk = view[offset:offset + block_size]
        blocks.append(EntropyBlock(
            offset=offset,
            entropy=shannon_entropy(chunk),
            percentage=offset / length * 100,
        ))
    logger.debug("Entropy sweep: %d bytes, %d blocks of %d",
                 length, len(blocks), block_size)
    return _build_profile(blocks, block_size)


def stream_entropy_profile(chunks: Iterable[tuple[int, bytes]], total_size: int,
                           block_size: int = DEFAULT_BLOCK_SIZE) -> EntropyProfile:
    """Same result as compute_entropy_profile, fed from (offset, chunk) reads.

    Chunks must be contiguous and in order (e.g. BufferReader.iter_chunks);
    they are re-blocked on `block_size` boundaries so arbitrary read sizes
    give byte-identical blocks.
    """
    block_size = max(1, int(block_size))
    blocks = []
    pending = bytearray()
    offset = 0

    def emit(data):
        nonlocal offset
        blocks.append(EntropyBlock(
            offset=offset,
            entropy=shannon_entropy(data),
            percentage=offset / total_size * 100 if total_size else 0.0,
        ))
        offset += len(data)

    for _, chunk in chunks:
        pending += chunk
        while len(pending) >= block_size:
            emit(bytes(pending[:block_size]))
            del pending[:block_size]
    if pending:
        emit(bytes(pending))
    return _build_profile(blocks, block_size)


def _build_profile(blocks: list[EntropyBlock], block_size: int) -> EntropyProfile:
    if not blocks:
        return EntropyProfile(blocks=(), block_size=block_size)
    values = [b.entropy for b in blocks]
    regions = detect_regions(blocks)
    return EntropyProfile(
        blocks=tuple(blocks),
        block_size=block_size,
        average=sum(values) / len(values),
        maximum=max(values),
        minimum=min(values),
        regions=tuple(regions),
        insights=tuple(derive_insights(regions)),
    )


# ══════════════════════════════════════════════════════════════
#  Regions & insights
# ══════════════════════════════════════════════════════════════

def detect_regions(blocks: list[EntropyBlock]) -> list[EntropyRegion]:
    """Group consecutive blocks of the same band into regions."""
    regions = []
    first = None
    last = None
    band = None
    for block in blocks:
        block_band = classify_band(block.entropy)
        if first is not None and block_band != band:
            regions.append(_region(band, first, last))
            first = None
        if first is None:
            first = block
            band = block_band
        last = block
    if first is not None:
        regions.append(_region(band, first, last))
    return regions


def _region(band: str, first: EntropyBlock, last: EntropyBlock) -> EntropyRegion:
    return EntropyRegion(
        type=band,
        start_offset=first.offset,
        start_percent=first.percentage,
        end_offset=last.offset,
        end_percent=last.percentage,
        entropy=first.entropy,
    )


def derive_insights(regions: list[EntropyRegion]) -> list[str]:
    high = sum(1 for r in regions if r.type == BAND_HIGH)
    low = sum(1 for r in regions if r.type == BAND_LOW)
    insights = []
    if high > low * 2:
        insights.append(INSIGHT_COMPRESSED)
    if low > high * 2:
        insights.append(INSIGHT_REPETITIVE)
    if len(regions) > CONTAINER_REGION_THRESHOLD:
        insights.append(INSIGHT_CONTAINER)
    return insights


def entropy_heatmap(buffer: bytes, width: int = 64) -> Heatmap:
    """Raw byte values laid out row-major, last row padded with zeros."""
    width = max(1, int(width))
    rows = []
    for start in range(0, len(buffer), width):
        row = list(buffer[start:start + width])
        row.extend([0] * (width - len(row)))
        rows.append(tuple(row))
    return Heatmap(rows=tuple(rows), width=width)
