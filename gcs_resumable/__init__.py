"""GCS Resumable Upload Library

A Python client for the Content-Range resumable upload protocol used by
Google Cloud Storage, able to resume uploads across process restarts.
Includes a small reference server for local testing.
"""

__version__ = "0.1.0"

from gcs_resumable import exceptions
from gcs_resumable.checksum import PrefixChecksum
from gcs_resumable.client import (
    MIN_CHUNK_SIZE,
    AiohttpTransport,
    BytesFile,
    ChunkProgress,
    ChunkWalker,
    FileSource,
    LocalFile,
    Response,
    Transport,
    Upload,
)
from gcs_resumable.exceptions import (
    DifferentChunkError,
    FileAlreadyUploadedError,
    InvalidChunkSizeError,
    MissingOptionsError,
    TransportError,
    UnknownResponseError,
    UploadAlreadyFinishedError,
    UploadError,
    UploadFailedError,
    UploadIncompleteError,
    UrlNotFoundError,
)
from gcs_resumable.kv_storage import FileStorage, KeyValueStorage, MemoryStorage
from gcs_resumable.progress import ProgressRecord, ProgressStore
from gcs_resumable.server import ResumableHTTPRequestHandler, ResumableUploadServer
from gcs_resumable.storage import SQLiteStorage, Storage

__all__ = [
    "Upload",
    "ChunkWalker",
    "ChunkProgress",
    "PrefixChecksum",
    "AiohttpTransport",
    "Response",
    "Transport",
    "FileSource",
    "LocalFile",
    "BytesFile",
    "MIN_CHUNK_SIZE",
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    "ProgressRecord",
    "ProgressStore",
    "ResumableUploadServer",
    "ResumableHTTPRequestHandler",
    "Storage",
    "SQLiteStorage",
    "exceptions",
    "UploadError",
    "InvalidChunkSizeError",
    "MissingOptionsError",
    "UploadAlreadyFinishedError",
    "DifferentChunkError",
    "UploadIncompleteError",
    "FileAlreadyUploadedError",
    "UrlNotFoundError",
    "UploadFailedError",
    "UnknownResponseError",
    "TransportError",
]
