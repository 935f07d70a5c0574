"""File sources the upload engine reads chunks from."""

import logging
import os
from pathlib import Path
from typing import Protocol, Union

import aiofiles

logger = logging.getLogger(__name__)


class FileSource(Protocol):
    """Protocol for anything that can be uploaded.

    Implementations expose a fixed ``size`` and an async ``read_slice``.
    """

    size: int

    async def read_slice(self, start: int, end: int) -> bytes:
        """
        Read bytes ``[start, end)``.

        Args:
            start: First byte offset
            end: Offset one past the last byte; clamped to ``size``

        Returns:
            The requested bytes
        """
        ...


class LocalFile:
    """A file on the local filesystem, read with aiofiles.

    The size is taken once at construction, like a browser ``File``.

    Example:
        >>> source = LocalFile("video.mp4")
        >>> chunk = await source.read_slice(0, 262144)
    """

    def __init__(self, path: Union[str, Path]):
        """
        Args:
            path: Path to the file

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a regular file
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"File not found: {self.path}")
        if not self.path.is_file():
            raise ValueError(f"Path is not a file: {self.path}")
        self.size = os.path.getsize(self.path)

    @property
    def name(self) -> str:
        return self.path.name

    async def read_slice(self, start: int, end: int) -> bytes:
        end = min(end, self.size)
        if end <= start:
            return b""
        async with aiofiles.open(self.path, "rb") as f:
            await f.seek(start)
            data = await f.read(end - start)
        logger.debug(f"Read {self.path.name}: {start}-{end} ({len(data)} bytes)")
        return data

    def __repr__(self) -> str:
        return f"LocalFile({str(self.path)!r}, size={self.size})"


class BytesFile:
    """An in-memory file, useful for generated content and tests."""

    def __init__(self, data: bytes, name: str = "blob"):
        self.data = bytes(data)
        self.name = name
        self.size = len(self.data)

    async def read_slice(self, start: int, end: int) -> bytes:
        return self.data[start:min(end, self.size)]

    def __repr__(self) -> str:
        return f"BytesFile({self.name!r}, size={self.size})"


def as_file_source(file: Union[FileSource, str, Path, bytes, bytearray]) -> FileSource:
    """Wrap a path or a bytes object in the matching FileSource."""
    if isinstance(file, (str, Path)):
        return LocalFile(file)
    if isinstance(file, (bytes, bytearray)):
        return BytesFile(file)
    return file
