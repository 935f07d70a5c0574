"""Resumable upload engine."""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from gcs_resumable.client.files import FileSource, as_file_source
from gcs_resumable.client.responses import (
    CHUNK_ALLOWED,
    STATUS_ALLOWED,
    check_response_status,
    parse_range_end,
)
from gcs_resumable.client.stats import ChunkProgress
from gcs_resumable.client.transport import AiohttpTransport, Response, Transport
from gcs_resumable.client.walker import ChunkWalker
from gcs_resumable.exceptions import (
    DifferentChunkError,
    InvalidChunkSizeError,
    MissingOptionsError,
    UnknownResponseError,
    UploadAlreadyFinishedError,
)
from gcs_resumable.kv_storage import FileStorage, KeyValueStorage
from gcs_resumable.progress import DEFAULT_NAMESPACE, ProgressStore

logger = logging.getLogger(__name__)

MIN_CHUNK_SIZE = 262144


class Upload:
    """Uploads one file to a resumable upload session URL.

    The file is sent as a sequence of contiguous ``Content-Range`` PUTs. After
    every accepted chunk the prefix checksum of the file so far is written to
    the progress storage. A later ``start()`` with the same id asks the server
    how far it got, re-checks the already sent part of the file against the
    recorded checksums and continues from there; if the file changed, the
    upload starts over from the first byte.

    Example:
        >>> upload = Upload(
        ...     id="backup-2024-01",
        ...     url=session_url,
        ...     file="backup.tar",
        ...     chunk_size=4 * 262144,
        ...     on_chunk_upload=lambda p: print(f"{p.progress_percent:.1f}%"),
        ... )
        >>> response = await upload.start()
    """

    def __init__(
        self,
        id: Optional[str] = None,
        url: Optional[str] = None,
        file: Union[FileSource, str, Path, bytes, None] = None,
        chunk_size: int = MIN_CHUNK_SIZE,
        storage: Optional[KeyValueStorage] = None,
        content_type: str = "text/plain",
        on_chunk_upload: Optional[Callable[[ChunkProgress], None]] = None,
        transport: Optional[Transport] = None,
        namespace: str = DEFAULT_NAMESPACE,
        allow_small_chunks: bool = False,
    ):
        """Initialize upload.

        Args:
            id: Stable identifier of the upload, used as the progress key
            url: Resumable upload session URL
            file: FileSource, path or bytes to upload
            chunk_size: Chunk size in bytes, a multiple of 262144
            storage: Key-value storage for progress (default: FileStorage)
            content_type: Content-Type sent with every chunk
            on_chunk_upload: Called with a ChunkProgress after every accepted chunk
            transport: Transport for the PUT requests (default: AiohttpTransport)
            namespace: Prefix of the progress storage keys
            allow_small_chunks: Accept any positive chunk size

        Raises:
            InvalidChunkSizeError: If chunk_size is not allowed
            MissingOptionsError: If id, url or file is missing
        """
        if chunk_size <= 0 or (chunk_size % MIN_CHUNK_SIZE != 0 and not allow_small_chunks):
            raise InvalidChunkSizeError(chunk_size)

        if not id or not url or file is None:
            raise MissingOptionsError()

        self.id = id
        self.url = url
        self.file = as_file_source(file)
        self.chunk_size = chunk_size
        self.content_type = content_type
        self.on_chunk_upload = on_chunk_upload
        self.transport = transport
        self.progress = ProgressStore(storage if storage is not None else FileStorage(), namespace)
        self.walker = ChunkWalker(self.file, chunk_size)
        self.last_response: Optional[Response] = None
        self._finished = False
        self._cancellations = 0

        logger.debug(
            f"Created upload {id}: url {url}, file size {self.file.size}, chunk size {chunk_size}"
        )

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def paused(self) -> bool:
        return self.walker.paused

    @property
    def total_chunks(self) -> int:
        return self.walker.total_chunks

    async def start(self) -> Optional[Response]:
        """Run the upload to completion.

        Returns:
            The last response received from the server

        Raises:
            UploadAlreadyFinishedError: If a previous start() completed
            UploadIncompleteError: If the server still wants bytes after the last chunk
            FileAlreadyUploadedError: If the session is already complete
            UrlNotFoundError: If the session URL expired or is invalid
            UploadFailedError: On a server failure; calling start() again resumes
            UnknownResponseError: On any other unexpected status
            TransportError: If a request got no response
        """
        if self._finished:
            raise UploadAlreadyFinishedError()

        owns_transport = self.transport is None
        transport = self.transport or AiohttpTransport()
        try:
            await self._run(transport)
        finally:
            if owns_transport:
                await transport.close()

        logger.info(f"Upload {self.id} complete, clearing progress")
        self.progress.clear(self.id)
        self._finished = True
        return self.last_response

    async def _run(self, transport: Transport) -> None:
        if self.file.size == 0:
            await self._finalize_empty(transport)
            return

        generation = self._cancellations
        record = self.progress.read(self.id, self.chunk_size, self.file.size)
        if not record.matches(self.chunk_size, self.file.size):
            logger.info(f"Upload {self.id} not resumable, starting from scratch")
            await self.walker.run(self._step_uploader(transport, generation))
            return

        logger.info(f"Upload {self.id} might be resumable")
        local_index = len(record.checksums)
        remote_index = await self._remote_resume_index(transport)
        resume_index = min(local_index, remote_index)
        logger.debug(
            f"Validating chunks up to index {resume_index} "
            f"(remote index {remote_index}, local index {local_index})"
        )

        async def validate(checksum: str, index: int, chunk: bytes) -> None:
            original = record.checksums[index]
            if original != checksum:
                self.progress.clear(self.id)
                raise DifferentChunkError(index, original, checksum)

        try:
            state = await self.walker.run(validate, 0, resume_index)
        except DifferentChunkError as e:
            logger.warning(
                f"Validation failed at chunk {e.chunk_index} "
                f"(old checksum {e.original_checksum}, new checksum {e.new_checksum}), "
                f"starting from scratch"
            )
            await self.walker.run(self._step_uploader(transport, generation))
            return

        logger.info(f"Validation passed, resuming upload {self.id} at chunk {resume_index}")
        await self.walker.run(
            self._step_uploader(transport, generation), resume_index, checksum=state
        )

    def _step_uploader(self, transport: Transport, generation: int):
        total = self.file.size

        async def upload_chunk(checksum: str, index: int, chunk: bytes) -> None:
            start = index * self.chunk_size
            end = start + len(chunk) - 1
            headers = {
                "Content-Type": self.content_type,
                "Content-Range": f"bytes {start}-{end}/{total}",
            }

            logger.debug(f"Uploading chunk {index}: bytes {start}-{end} ({len(chunk)} bytes)")
            response = await transport.put(self.url, chunk, headers)
            self.last_response = response
            check_response_status(response, self.id, self.url, CHUNK_ALLOWED)

            if self._cancellations != generation:
                logger.debug(f"Upload {self.id} cancelled while chunk {index} was in flight")
                return

            logger.debug(
                f"Chunk {index} accepted with {response.status}, adding checksum {checksum}"
            )
            self.progress.add_checksum(self.id, index, checksum, self.chunk_size, total)

            if self.on_chunk_upload:
                self.on_chunk_upload(
                    ChunkProgress(
                        total_bytes=total,
                        uploaded_bytes=end + 1,
                        chunk_index=index,
                        chunk_length=len(chunk),
                    )
                )

        return upload_chunk

    async def _remote_resume_index(self, transport: Transport) -> int:
        """Ask the server how many whole chunks it has received."""
        headers = {"Content-Range": f"bytes */{self.file.size}"}
        logger.debug(f"Retrieving upload status for {self.id}")
        response = await transport.put(self.url, None, headers)
        check_response_status(response, self.id, self.url, STATUS_ALLOWED)

        header = response.header("range")
        logger.debug(f"Received upload status: {header}")
        if not header:
            return 0
        try:
            bytes_received = parse_range_end(header) + 1
        except ValueError as e:
            raise UnknownResponseError(response) from e
        return bytes_received // self.chunk_size

    async def _finalize_empty(self, transport: Transport) -> None:
        """An empty file has no chunks; a single zero-length PUT completes it."""
        logger.debug(f"Uploading empty file for {self.id}")
        response = await transport.put(
            self.url,
            None,
            {"Content-Type": self.content_type, "Content-Range": "bytes */0"},
        )
        self.last_response = response
        check_response_status(response, self.id, self.url, (200, 201))

    def pause(self) -> None:
        self.walker.pause()
        logger.info(f"Upload {self.id} paused")

    def unpause(self) -> None:
        self.walker.unpause()
        logger.info(f"Upload {self.id} unpaused")

    def cancel(self) -> None:
        """Stop before the next chunk and discard recorded progress.

        A chunk already on the wire is not aborted, but neither its
        acknowledgement nor any later chunk of the same run is recorded. The
        upload stays paused; call ``unpause()`` before starting it again.
        """
        self._cancellations += 1
        self.walker.pause()
        self.progress.clear(self.id)
        logger.info(f"Upload {self.id} cancelled")
