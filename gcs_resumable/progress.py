"""Persisted progress records for resumable uploads."""

import json
import logging
from dataclasses import dataclass, field

from gcs_resumable.kv_storage import KeyValueStorage

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "__gcsBrowserUpload"


@dataclass
class ProgressRecord:
    """Progress of one upload, as last written to storage.

    Attributes:
        checksums: Prefix checksum of every chunk acknowledged so far,
            indexed by chunk index
        chunk_size: Chunk size the checksums were computed with
        started: True once at least one checksum has been recorded
        file_size: Size of the file when the record was written
    """

    chunk_size: int
    file_size: int
    checksums: list[str] = field(default_factory=list)
    started: bool = False

    def matches(self, chunk_size: int, file_size: int) -> bool:
        """Whether an upload with this chunk and file size can resume from the record."""
        return self.started and self.chunk_size == chunk_size and self.file_size == file_size

    def to_json(self) -> str:
        return json.dumps(
            {
                "checksums": self.checksums,
                "chunkSize": self.chunk_size,
                "started": self.started,
                "fileSize": self.file_size,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "ProgressRecord":
        data = json.loads(raw)
        return cls(
            chunk_size=int(data["chunkSize"]),
            file_size=int(data["fileSize"]),
            checksums=list(data.get("checksums") or []),
            started=bool(data.get("started", False)),
        )


class ProgressStore:
    """Reads and writes progress records in a key-value storage.

    Each record lives under ``"{namespace}.{upload_id}"`` so that several
    stores, or several namespaces in one store, can coexist.

    Example:
        >>> store = ProgressStore(MemoryStorage())
        >>> record = store.read("video-1", chunk_size=262144, file_size=1024)
        >>> record.started
        False
    """

    def __init__(self, storage: KeyValueStorage, namespace: str = DEFAULT_NAMESPACE):
        self.storage = storage
        self.namespace = namespace

    def key(self, upload_id: str) -> str:
        return f"{self.namespace}.{upload_id}"

    def read(self, upload_id: str, chunk_size: int, file_size: int) -> ProgressRecord:
        """Load the record for upload_id.

        A missing record is the normal state of a fresh upload, so a default
        record built from chunk_size and file_size is returned instead.
        A record that cannot be decoded is treated the same way.
        """
        raw = self.storage.get_item(self.key(upload_id))
        if raw:
            try:
                return ProgressRecord.from_json(raw)
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Ignoring unreadable progress record for {upload_id}: {e}")
        return ProgressRecord(chunk_size=chunk_size, file_size=file_size)

    def write(self, upload_id: str, record: ProgressRecord) -> None:
        self.storage.set_item(self.key(upload_id), record.to_json())

    def clear(self, upload_id: str) -> None:
        self.storage.remove_item(self.key(upload_id))

    def add_checksum(
        self, upload_id: str, index: int, checksum: str, chunk_size: int, file_size: int
    ) -> ProgressRecord:
        """Record the prefix checksum of chunk index and mark the upload started.

        Raises:
            ValueError: If index would leave a gap in the checksum list
        """
        record = self.read(upload_id, chunk_size, file_size)
        if index < len(record.checksums):
            record.checksums[index] = checksum
        elif index == len(record.checksums):
            record.checksums.append(checksum)
        else:
            raise ValueError(
                f"Cannot record checksum for chunk {index}, "
                f"only {len(record.checksums)} chunks recorded"
            )
        record.started = True
        self.write(upload_id, record)
        return record
