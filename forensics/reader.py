"""
File Reader — mmap-backed loading of evidence files.

This is the only module in the package that reads input from disk.  The
analysis engines receive plain bytes (or a memoryview) and never open
files themselves.

  • Memory-mapped I/O for zero-copy reads; the OS handles paging.
  • Fallback to plain read() if mmap fails (empty files, pipes, some OSes).
  • iter_chunks() for streaming scans of files too large to hold at once.
"""

import os
import mmap
import logging
import mimetypes
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Optional

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024


@dataclass(frozen=True)
class FileInfo:
    """Filesystem facts about an evidence file (the bytes live elsewhere)."""
    name: str
    path: str
    size: int
    mtime: float
    mime_type: str = "application/octet-stream"

    @property
    def extension(self) -> str:
        _, ext = os.path.splitext(self.name)
        return ext.lstrip(".").upper()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "mtime": self.mtime,
            "mime_type": self.mime_type,
            "extension": self.extension,
        }


def file_info(path: str) -> FileInfo:
    st = os.stat(path)
    mime, _ = mimetypes.guess_type(path)
    return FileInfo(
        name=os.path.basename(path),
        path=os.path.abspath(path),
        size=st.st_size,
        mtime=st.st_mtime,
        mime_type=mime or "application/octet-stream",
    )


class BufferReader:
    """
    Read-only view of an open file with mmap support.

    Usage:
        with open(path, "rb") as f, BufferReader(f, size) as reader:
            for offset, chunk in reader.iter_chunks(block_size=1 << 20):
                ...

    Or for random access:
        data = reader.read_at(offset, size)
    """

    def __init__(self, fd: BinaryIO, total_size: int, use_mmap: bool = True):
        self._fd = fd
        self._size = total_size
        self._mmap: Optional[mmap.mmap] = None
        self._using_mmap = False

        if use_mmap and total_size > 0:
            self._try_mmap()

    def _try_mmap(self):
        try:
            self._mmap = mmap.mmap(self._fd.fileno(), 0, access=mmap.ACCESS_READ)
            self._using_mmap = True
            logger.debug("mmap enabled: %d bytes", self._size)
        except (OSError, ValueError, OverflowError) as e:
            logger.debug("mmap unavailable (%s), using buffered reads", e)
            self._mmap = None
            self._using_mmap = False

    @property
    def is_mmap(self) -> bool:
        return self._using_mmap

    @property
    def size(self) -> int:
        return self._size

    def read_at(self, offset: int, size: int) -> bytes:
        """Read up to `size` bytes at `offset`; b"" outside the file."""
        if offset < 0 or offset >= self._size:
            return b""
        size = min(size, self._size - offset)
        if size <= 0:
            return b""

        if self._using_mmap and self._mmap is not None:
            return self._mmap[offset:offset + size]

        self._fd.seek(offset)
        return self._fd.read(size)

    def read_all(self) -> bytes:
        return self.read_at(0, self._size)

    def iter_chunks(self, block_size: int = DEFAULT_CHUNK_SIZE,
                    start: int = 0, end: int = 0) -> Iterator[tuple[int, bytes]]:
        """
        Yield contiguous, non-overlapping (offset, chunk) tuples.

        Args:
            block_size: Bytes per read.
            start:      First byte offset.
            end:        Stop offset (0 = end of file).
        """
        block_size = max(1, int(block_size))
        if end <= 0:
            end = self._size
        end = min(end, self._size)

        offset = start
        while offset < end:
            chunk = self.read_at(offset, min(block_size, end - offset))
            if not chunk:
                break
            yield offset, chunk
            offset += len(chunk)

    def close(self):
        """Release mmap resources."""
        if self._mmap is not None:
            self._mmap.close()
            self._mmap = None
            self._using_mmap = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def load_file(path: str) -> bytes:
    """Whole file contents.  OSError propagates to the caller."""
    size = os.path.getsize(path)
    with open(path, "rb") as f, BufferReader(f, size) as reader:
        data = reader.read_all()
        used_mmap = reader.is_mmap
    logger.debug("Loaded %s (%d bytes, mmap=%s)", path, len(data), used_mmap)
    return data
