"""
Global gcs_resumable exception classes.

Every error raised by the upload engine derives from UploadError so callers
can catch the whole family at once, or match on the concrete kind.
"""


class UploadError(Exception):
    """
    Base class for all upload errors.

    Attributes:
        message (str): Main message of the exception
    """

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class InvalidChunkSizeError(UploadError):
    """Raised when the configured chunk size is not a multiple of 262144."""

    def __init__(self, chunk_size):
        super().__init__(f"Invalid chunk size {chunk_size}, must be a multiple of 262144")
        self.chunk_size = chunk_size


class MissingOptionsError(UploadError):
    """Raised when id, url or file is missing from the upload options."""

    def __init__(self):
        super().__init__("Missing options for Upload")


class UploadAlreadyFinishedError(UploadError):
    """Raised when start() is called on an upload that already completed."""

    def __init__(self):
        super().__init__("Upload instance has already finished")


class DifferentChunkError(UploadError):
    """
    Raised while validating a resumed upload when a chunk no longer matches.

    Attributes:
        chunk_index (int): Index of the first chunk that differs
        original_checksum (str): Checksum recorded by the previous attempt
        new_checksum (str): Checksum computed from the file now
    """

    def __init__(self, chunk_index, original_checksum, new_checksum):
        super().__init__(f"Chunk at index '{chunk_index}' is different to original")
        self.chunk_index = chunk_index
        self.original_checksum = original_checksum
        self.new_checksum = new_checksum


class UploadIncompleteError(UploadError):
    """Raised when the server reports the upload as incomplete unexpectedly."""

    def __init__(self):
        super().__init__("Upload is not complete")


class FileAlreadyUploadedError(UploadError):
    """Raised when the server reports the file as already uploaded."""

    def __init__(self, upload_id, url):
        super().__init__(f"File '{upload_id}' has already been uploaded to unique url '{url}'")
        self.upload_id = upload_id
        self.url = url


class UrlNotFoundError(UploadError):
    """Raised when the upload URL has expired or never existed."""

    def __init__(self, url):
        super().__init__(f"Upload URL '{url}' has either expired or is invalid")
        self.url = url


class UploadFailedError(UploadError):
    """
    Raised on a server-side failure status.

    The upload can be retried by calling start() again.

    Attributes:
        status_code (int): HTTP status code of the failed response
    """

    retryable = True

    def __init__(self, status_code):
        super().__init__(f"HTTP status {status_code} received from server, consider retrying")
        self.status_code = status_code


class UnknownResponseError(UploadError):
    """
    Raised when the server answers with a status the engine does not expect.

    Attributes:
        response: The raw transport response
    """

    def __init__(self, response):
        super().__init__("Unknown response received from server")
        self.response = response


class TransportError(UploadError):
    """Raised by a transport when the request never produced an HTTP response."""

    pass
