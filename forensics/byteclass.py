"""
Byte Classifier — leaf helpers shared by every analysis engine.

  • is_printable  — printable-ASCII test for a single byte (32..126)
  • find_pattern  — literal byte-sequence search from a start index
  • find_all      — every start position of a pattern
  • as_bytes      — searchable form of any buffer (memoryview → bytes)
  • to_hex        — two-digit uppercase hex for one byte
"""

PRINTABLE_MIN = 32
PRINTABLE_MAX = 126

# Marker for a position past the end of a buffer (never a byte value)
EOF = "EOF"


def is_printable(byte: int) -> bool:
    """True for bytes in the printable ASCII range [32, 126]."""
    return PRINTABLE_MIN <= byte <= PRINTABLE_MAX


def as_bytes(data) -> bytes:
    """`data` itself when it can be searched directly, else a bytes copy."""
    if hasattr(data, "find"):             # bytes, bytearray, mmap
        return data
    return bytes(data)


def find_pattern(data: bytes, pattern: bytes, start: int = 0) -> int:
    """Return the first index >= start where `pattern` occurs, or -1."""
    data = as_bytes(data)
    if not pattern or start < 0 or start > len(data) - len(pattern):
        return -1
    return data.find(pattern, start)


def find_all(data: bytes, pattern: bytes) -> list[int]:
    """Return all positions of `pattern` in `data` (overlaps included)."""
    positions = []
    if not pattern:
        return positions
    data = as_bytes(data)
    start = 0
    while True:
        pos = data.find(pattern, start)
        if pos == -1:
            break
        positions.append(pos)
        start = pos + 1
    return positions


def to_hex(byte: int) -> str:
    return f"{byte:02X}"


def hex_join(data: bytes, sep: str = " ") -> str:
    """Space-separated uppercase hex for a byte slice."""
    return sep.join(f"{b:02X}" for b in data)
