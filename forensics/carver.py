"""
File Carver — extract embedded files from a host buffer by signature.

HOW CARVING WORKS
─────────────────
1.  For every catalog signature, run find_occurrences() over the whole
    buffer: header → nearest following footer, greedy and non-overlapping.
2.  Each span becomes a CarvedFile record (type, offset, length, ext).
3.  Signatures are searched independently, so spans found by different
    signatures may overlap.  They are kept as-is, not de-duplicated.
4.  Results keep per-signature discovery order, signatures in catalog order.

carve() searches bytes and mmap buffers in place (a memoryview is copied
once); extract() slices out one carved file and
save_carved_files() writes them to disk.
"""

from __future__ import annotations

import os
import shutil
import logging
from dataclasses import dataclass
from typing import Optional

from .byteclass import as_bytes
from .errors import CapacityExceeded
from .signatures import CARVING_SIGNATURES, Signature, find_occurrences

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CarvedFile:
    """One embedded file located inside a host buffer."""
    type: str
    offset: int
    length: int             # footer end - offset
    extension: str
    mime_type: str = "application/octet-stream"

    @property
    def end(self) -> int:
        return self.offset + self.length

    @property
    def hex_offset(self) -> str:
        return f"0x{self.offset:X}"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "extension": self.extension,
            "offset": self.offset,
            "hex_offset": self.hex_offset,
            "length": self.length,
            "mime_type": self.mime_type,
        }


@dataclass(frozen=True)
class CarveResult:
    files: tuple[CarvedFile, ...] = ()
    types: tuple[str, ...] = ()

    @property
    def total_found(self) -> int:
        return len(self.files)

    def to_dict(self) -> dict:
        return {
            "total_found": self.total_found,
            "types": list(self.types),
            "files": [f.to_dict() for f in self.files],
        }


def carve(buffer: bytes,
          signatures: Optional[list[Signature]] = None) -> CarveResult:
    """Find every header…footer span for each carving signature."""
    if signatures is None:
        signatures = CARVING_SIGNATURES
    buffer = as_bytes(buffer)
    files = []
    types = []
    for sig in signatures:
        if not sig.can_carve:
            logger.debug("Skipping %s: no footer to carve with", sig.name)
            continue
        spans = find_occurrences(buffer, sig.header, sig.footer)
        for start, end in spans:
            files.append(CarvedFile(
                type=sig.name,
                offset=start,
                length=end - start,
                extension=sig.extension,
                mime_type=sig.mime_type,
            ))
        if spans and sig.name not in types:
            types.append(sig.name)
        logger.debug("%s: %d carved", sig.name, len(spans))
    return CarveResult(files=tuple(files), types=tuple(types))


def extract(buffer: bytes, carved: CarvedFile) -> bytes:
    """The carved file's bytes (a copy of buffer[offset:end])."""
    return bytes(buffer[carved.offset:carved.end])


def save_carved_files(buffer: bytes, result: CarveResult,
                      output_dir: str) -> list[str]:
    """Write each carved file to `output_dir`; returns the saved paths.

    Free space is checked up front so a full disk never leaves a partial set.
    """
    os.makedirs(output_dir, exist_ok=True)
    needed = sum(f.length for f in result.files)
    available = shutil.disk_usage(output_dir).free
    if needed > available:
        raise CapacityExceeded(needed, available, what="carved output")

    paths = []
    for i, cf in enumerate(result.files, start=1):
        filename = f"carved_{i:04d}_{cf.offset:08X}.{cf.extension}"
        path = os.path.join(output_dir, filename)
        # Avoid overwriting
        if os.path.exists(path):
            base, ext = os.path.splitext(path)
            n = 1
            while os.path.exists(path):
                path = f"{base}_{n}{ext}"
                n += 1
        with open(path, "wb") as f:
            f.write(extract(buffer, cf))
        paths.append(path)
    logger.info("Saved %d carved file(s) to %s", len(paths), output_dir)
    return paths
