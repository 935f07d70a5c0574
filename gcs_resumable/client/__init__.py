"""Resumable upload client components."""

from gcs_resumable.client.files import BytesFile, FileSource, LocalFile
from gcs_resumable.client.stats import ChunkProgress
from gcs_resumable.client.transport import AiohttpTransport, Response, Transport
from gcs_resumable.client.upload import MIN_CHUNK_SIZE, Upload
from gcs_resumable.client.walker import ChunkWalker

__all__ = [
    "Upload",
    "ChunkWalker",
    "ChunkProgress",
    "AiohttpTransport",
    "Response",
    "Transport",
    "FileSource",
    "LocalFile",
    "BytesFile",
    "MIN_CHUNK_SIZE",
]
