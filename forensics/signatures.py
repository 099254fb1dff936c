"""
File Signature Database — magic-number detection and carving catalog.

DESIGN RATIONALE
────────────────
Two catalogs share one `Signature` record:

  • DETECTION_SIGNATURES — header bytes (at a fixed offset) → type label.
    Used by detect_type() on the first few bytes of a buffer.
  • CARVING_SIGNATURES   — header + footer pairs.  Used by the carver to
    pull embedded files out of a larger host buffer.

Ordering matters for detection: a short prefix would shadow a longer,
more specific one that starts with the same bytes.  The detection catalog
is therefore sorted longest-header-first at import time (stable, so
equal-length entries keep their table order).  Headers anchored at byte 0
are tried before headers found deeper in the window, so a JPEG prefix wins
over whatever follows it.

Exported:
  • Signature            — frozen dataclass describing one file type
  • detect_type()        — first matching label, or "Unknown"
  • file_signature()     — first 8 bytes as spaced uppercase hex
  • order_catalog()      — the detection ordering, for custom catalogs
  • find_shadowed()      — entries an earlier entry would always hide
  • find_occurrences()   — greedy header → nearest-footer span search
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .byteclass import as_bytes, find_pattern, hex_join

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

# Bytes sampled from the start of a buffer for type detection
SAMPLE_WINDOW = 8


@dataclass(frozen=True)
class Signature:
    """Describes one recognisable file type."""
    name: str                           # Type label, e.g. "JPEG Image"
    header: bytes
    footer: Optional[bytes] = None      # End-of-file marker (carving only)
    extension: str = ""                 # Without dot
    mime_type: str = "application/octet-stream"
    offset: int = 0                     # Where `header` sits in the window

    def matches(self, window: bytes) -> bool:
        end = self.offset + len(self.header)
        return len(window) >= end and window[self.offset:end] == self.header

    @property
    def can_carve(self) -> bool:
        return bool(self.header) and bool(self.footer)


# ══════════════════════════════════════════════════════════════
#  D E T E C T I O N   C A T A L O G
# ══════════════════════════════════════════════════════════════

_DETECTION_TABLE: list[Signature] = [
    # ── Images ──
    Signature("JPEG Image", b"\xFF\xD8\xFF", extension="jpg", mime_type="image/jpeg"),
    Signature("PNG Image", b"\x89PNG", extension="png", mime_type="image/png"),
    Signature("GIF Image", b"GIF8", extension="gif", mime_type="image/gif"),
    Signature("BMP Image", b"BM", extension="bmp", mime_type="image/bmp"),
    Signature("TIFF Image (little-endian)", b"II\x2A\x00", extension="tiff",
              mime_type="image/tiff"),
    Signature("TIFF Image (big-endian)", b"MM\x00\x2A", extension="tiff",
              mime_type="image/tiff"),
    Signature("ICO/CUR Image", b"\x00\x00\x01\x00", extension="ico",
              mime_type="image/x-icon"),

    # ── Documents ──
    Signature("PDF Document", b"%PDF", extension="pdf", mime_type="application/pdf"),
    Signature("SQLite Database", b"SQLite format 3\x00", extension="sqlite",
              mime_type="application/vnd.sqlite3"),

    # ── Archives ──
    Signature("ZIP Archive", b"PK\x03\x04", extension="zip", mime_type="application/zip"),
    Signature("ZIP Archive (empty)", b"PK\x05\x06", extension="zip",
              mime_type="application/zip"),
    Signature("ZIP Archive (spanned)", b"PK\x07\x08", extension="zip",
              mime_type="application/zip"),
    Signature("RAR Archive", b"Rar!", extension="rar", mime_type="application/vnd.rar"),
    Signature("7-Zip Archive", b"7z\xBC\xAF", extension="7z",
              mime_type="application/x-7z-compressed"),
    Signature("GZIP Archive", b"\x1F\x8B\x08", extension="gz", mime_type="application/gzip"),

    # ── Audio / Video ──
    Signature("MP3 Audio", b"ID3", extension="mp3", mime_type="audio/mpeg"),
    Signature("MP3 Audio (no ID3)", b"\xFF\xFB", extension="mp3", mime_type="audio/mpeg"),
    Signature("MP4/MOV Video", b"ftyp", extension="mp4", mime_type="video/mp4",
              offset=4),                                # ISO box: size(4) + "ftyp"
    Signature("WAV/AVI/WebP", b"RIFF", extension="riff",
              mime_type="application/octet-stream"),

    # ── Executables ──
    Signature("ELF Executable", b"\x7FELF", extension="elf",
              mime_type="application/x-elf"),
    Signature("Windows Executable (PE)", b"MZ", extension="exe",
              mime_type="application/vnd.microsoft.portable-executable"),
]


def order_catalog(table: list[Signature]) -> list[Signature]:
    """Offset-0 headers first, each group longest header first (stable)."""
    return sorted(table, key=lambda s: (s.offset == 0, len(s.header)), reverse=True)


DETECTION_SIGNATURES: list[Signature] = order_catalog(_DETECTION_TABLE)


# ══════════════════════════════════════════════════════════════
#  C A R V I N G   C A T A L O G
# ══════════════════════════════════════════════════════════════

SIG_JPEG = Signature(
    "JPEG", b"\xFF\xD8\xFF", footer=b"\xFF\xD9",
    extension="jpg", mime_type="image/jpeg",
)
SIG_PNG = Signature(
    "PNG", b"\x89\x50\x4E\x47\x0D\x0A\x1A\x0A",
    footer=b"\x49\x45\x4E\x44\xAE\x42\x60\x82",
    extension="png", mime_type="image/png",
)
SIG_GIF = Signature(
    "GIF", b"\x47\x49\x46\x38", footer=b"\x00\x3B",
    extension="gif", mime_type="image/gif",
)
SIG_PDF = Signature(
    "PDF", b"\x25\x50\x44\x46", footer=b"\x25\x25\x45\x4F\x46",
    extension="pdf", mime_type="application/pdf",
)
SIG_ZIP = Signature(
    "ZIP", b"\x50\x4B\x03\x04", footer=b"\x50\x4B\x05\x06",
    extension="zip", mime_type="application/zip",
)

CARVING_SIGNATURES: list[Signature] = [SIG_JPEG, SIG_PNG, SIG_GIF, SIG_PDF, SIG_ZIP]


# ══════════════════════════════════════════════════════════════
#  Matching
# ══════════════════════════════════════════════════════════════

def detect_type(window: bytes,
                catalog: Optional[list[Signature]] = None) -> str:
    """Label of the first catalog entry matching `window`, else "Unknown"."""
    for sig in DETECTION_SIGNATURES if catalog is None else catalog:
        if sig.matches(window):
            return sig.name
    return UNKNOWN


def file_signature(data: bytes) -> str:
    """First SAMPLE_WINDOW bytes as spaced uppercase hex."""
    return hex_join(data[:SAMPLE_WINDOW])


def find_shadowed(catalog: list[Signature]) -> list[tuple[Signature, Signature]]:
    """(earlier, later) pairs where `earlier` would always hide `later`."""
    shadowed = []
    for i, later in enumerate(catalog):
        for earlier in catalog[:i]:
            if (earlier.offset == later.offset
                    and later.header.startswith(earlier.header)):
                shadowed.append((earlier, later))
    return shadowed


def find_occurrences(buffer: bytes, header: bytes,
                     footer: bytes) -> list[tuple[int, int]]:
    """Greedy, non-overlapping header → nearest-footer spans [start, end).

    A header without a following footer is abandoned and the search resumes
    right after that header.  After a match the search resumes at the
    footer's end; consumed bytes are never rescanned.
    """
    spans = []
    if not header or not footer:
        return spans
    buffer = as_bytes(buffer)
    cursor = 0
    while cursor < len(buffer):
        start = find_pattern(buffer, header, cursor)
        if start == -1:
            break
        footer_pos = find_pattern(buffer, footer, start + len(header))
        if footer_pos == -1:
            cursor = start + len(header)
            continue
        end = footer_pos + len(footer)
        spans.append((start, end))
        cursor = end
    return spans
