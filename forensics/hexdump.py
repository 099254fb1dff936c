"""
Hex dump formatting shared by every hex view.

    00000000  89 50 4E 47 0D 0A 1A 0A 00 00 00 0D 49 48 44 52  |.PNG........IHDR|
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from .byteclass import is_printable


@dataclass(frozen=True)
class HexRow:
    offset: int
    hex_bytes: tuple[str, ...]
    ascii: str


def hex_rows(data: bytes, bytes_per_row: int = 16, start_offset: int = 0,
             ascii_fallback: str = ".", uppercase: bool = True) -> Iterator[HexRow]:
    """Yield one HexRow per `bytes_per_row` slice of `data`.

    `start_offset` is added to reported offsets (for views into a larger
    buffer); non-printable bytes show as `ascii_fallback` in the ASCII column.
    """
    bytes_per_row = max(1, int(bytes_per_row))
    fmt = "{:02X}" if uppercase else "{:02x}"
    for i in range(0, len(data), bytes_per_row):
        row = data[i:i + bytes_per_row]
        yield HexRow(
            offset=start_offset + i,
            hex_bytes=tuple(fmt.format(b) for b in row),
            ascii="".join(chr(b) if is_printable(b) else ascii_fallback for b in row),
        )


def hexdump(data: bytes, bytes_per_row: int = 16, start_offset: int = 0,
            offset_width: int = 8, ascii_fallback: str = ".",
            uppercase: bool = True) -> str:
    bytes_per_row = max(1, int(bytes_per_row))
    hex_width = bytes_per_row * 3 - 1
    offset_fmt = "{:0%d%s}" % (offset_width, "X" if uppercase else "x")
    lines = []
    for row in hex_rows(data, bytes_per_row, start_offset, ascii_fallback, uppercase):
        hex_part = " ".join(row.hex_bytes).ljust(hex_width)
        lines.append(f"{offset_fmt.format(row.offset)}  {hex_part}  |{row.ascii}|")
    return "\n".join(lines)
