"""
Rolling prefix checksums for chunked uploads.

Uses an MD5 accumulator that is fed every chunk in order; the checksum
reported for a chunk covers all bytes from offset 0 through its end.
"""

import hashlib
from typing import Optional


class PrefixChecksum:
    """
    Cumulative MD5 over the chunks of a file.

    The running accumulator is never finalized. Each digest is taken from a
    copy so that the accumulator keeps absorbing later chunks.

    Example:
        >>> checksum = PrefixChecksum()
        >>> first = checksum.update(b"abc")
        >>> second = checksum.update(b"def")
        >>> second == hashlib.md5(b"abcdef").hexdigest()
        True
    """

    def __init__(self, running: Optional["hashlib._Hash"] = None):
        self._running = running if running is not None else hashlib.md5()
        self.chunks = 0

    def update(self, chunk: bytes) -> str:
        """
        Feed chunk into the accumulator.

        Args:
            chunk: Next chunk of the file

        Returns:
            str: Hex digest of every byte consumed so far
        """
        self._running.update(chunk)
        self.chunks += 1
        return self.hexdigest()

    def hexdigest(self) -> str:
        """Digest of the bytes consumed so far, leaving the accumulator untouched."""
        return self._running.copy().hexdigest()

    def copy(self) -> "PrefixChecksum":
        clone = PrefixChecksum(self._running.copy())
        clone.chunks = self.chunks
        return clone
