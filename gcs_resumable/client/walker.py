"""Sequential chunk iteration with cooperative pause."""

import asyncio
import logging
import math
from typing import Awaitable, Callable, Optional

from gcs_resumable.checksum import PrefixChecksum
from gcs_resumable.client.files import FileSource

logger = logging.getLogger(__name__)

StepFunction = Callable[[str, int, bytes], Awaitable[Optional[bool]]]


class ChunkWalker:
    """Walks a file chunk by chunk, in order, computing prefix checksums.

    Chunks are processed strictly in increasing order because the remote
    protocol only accepts contiguous byte ranges. Between two chunks the
    walk can be paused; a chunk that is already being read or sent is never
    interrupted.

    Example:
        >>> walker = ChunkWalker(BytesFile(data), chunk_size=262144)
        >>> async def step(checksum, index, chunk):
        ...     print(index, len(chunk), checksum)
        >>> await walker.run(step)
    """

    def __init__(self, file: FileSource, chunk_size: int):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1 byte, got {chunk_size}")
        self.file = file
        self.chunk_size = chunk_size
        self._unpaused = asyncio.Event()
        self._unpaused.set()

    @property
    def total_chunks(self) -> int:
        return math.ceil(self.file.size / self.chunk_size)

    @property
    def paused(self) -> bool:
        return not self._unpaused.is_set()

    def chunk_bounds(self, index: int) -> tuple[int, int]:
        """Return the ``[start, end)`` byte range of chunk index."""
        start = index * self.chunk_size
        return start, min(start + self.chunk_size, self.file.size)

    async def run(
        self,
        step: StepFunction,
        start_index: int = 0,
        end_index: Optional[int] = None,
        checksum: Optional[PrefixChecksum] = None,
    ) -> PrefixChecksum:
        """Call step for every chunk in ``[start_index, end_index)``.

        Args:
            step: Async callable receiving (checksum, index, chunk). Returning
                False stops the walk cleanly; raising aborts it.
            start_index: First chunk to process
            end_index: Chunk index to stop at (default: total chunks)
            checksum: Prefix checksum state covering chunks before start_index,
                typically the state returned by a previous run

        Returns:
            The prefix checksum state after the last processed chunk
        """
        total_chunks = self.total_chunks
        stop = total_chunks if end_index is None else min(end_index, total_chunks)

        logger.debug(
            f"Starting run: total chunks {total_chunks}, "
            f"start index {start_index}, end index {stop}"
        )

        if checksum is None:
            checksum = await self._catch_up(start_index)
        elif checksum.chunks != start_index:
            raise ValueError(
                f"Checksum covers {checksum.chunks} chunks, cannot start at index {start_index}"
            )

        for index in range(start_index, stop):
            if self.paused:
                logger.debug(f"Paused before chunk {index}")
                await self._unpaused.wait()
                logger.debug(f"Resumed before chunk {index}")

            chunk = await self.file.read_slice(*self.chunk_bounds(index))
            digest = checksum.update(chunk)

            if await step(digest, index, chunk) is False:
                logger.debug(f"Run stopped by step at chunk {index}")
                return checksum

        logger.debug("File process complete")
        return checksum

    async def _catch_up(self, start_index: int) -> PrefixChecksum:
        """Hash the chunks before start_index so later digests stay prefix checksums."""
        checksum = PrefixChecksum()
        for index in range(min(start_index, self.total_chunks)):
            checksum.update(await self.file.read_slice(*self.chunk_bounds(index)))
        return checksum

    def pause(self) -> None:
        """Stop before the next chunk boundary."""
        self._unpaused.clear()

    def unpause(self) -> None:
        """Release every run waiting at a chunk boundary."""
        self._unpaused.set()
