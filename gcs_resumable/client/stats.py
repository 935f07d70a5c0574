"""Progress events reported by the upload engine."""

from dataclasses import dataclass


@dataclass
class ChunkProgress:
    """Progress after a chunk has been accepted by the server.

    Attributes:
        total_bytes: Size of the file being uploaded
        uploaded_bytes: Bytes acknowledged so far, counting from offset 0
        chunk_index: Index of the chunk that was just accepted
        chunk_length: Length of that chunk in bytes
    """

    total_bytes: int
    uploaded_bytes: int
    chunk_index: int
    chunk_length: int

    @property
    def progress_percent(self) -> float:
        """Get progress as percentage (0-100)."""
        if self.total_bytes > 0:
            return (self.uploaded_bytes / self.total_bytes) * 100
        return 100.0

    @property
    def remaining_bytes(self) -> int:
        return self.total_bytes - self.uploaded_bytes

    @property
    def is_last_chunk(self) -> bool:
        return self.uploaded_bytes >= self.total_bytes
