"""Exceptions raised outside the pure analysis engines."""


class ForensicsError(Exception):
    """Base class for errors surfaced to callers of the forensics package."""


class CapacityExceeded(ForensicsError):
    """A bounded-capacity operation was asked to write more than fits.

    Raised before anything is written, never after a partial write.
    """

    def __init__(self, needed: int, available: int, what: str = "output"):
        self.needed = needed
        self.available = available
        super().__init__(
            f"{what} needs {needed} bytes but only {available} bytes are available"
        )


class DecompressionError(ForensicsError):
    """Input is not a readable GZIP stream."""

    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__("Decompression failed. Not a valid GZIP file."
                         + (f" ({reason})" if reason else ""))
