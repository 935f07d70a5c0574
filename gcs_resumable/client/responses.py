"""Translation of server responses into upload outcomes."""

import re
from collections.abc import Collection

from gcs_resumable.client.transport import Response
from gcs_resumable.exceptions import (
    FileAlreadyUploadedError,
    UnknownResponseError,
    UploadFailedError,
    UploadIncompleteError,
    UrlNotFoundError,
)

# 308 means "resume incomplete": the server wants more bytes.
CHUNK_ALLOWED = (200, 201, 308)
STATUS_ALLOWED = (308,)
SERVER_FAILURE = (500, 502, 503, 504)

_RANGE_END = re.compile(r"-(\d+)$")


def check_response_status(
    response: Response, upload_id: str, url: str, allowed: Collection[int] = ()
) -> bool:
    """Check response against the statuses allowed at the call site.

    Args:
        response: Transport response
        upload_id: Upload id, for error messages
        url: Upload URL, for error messages
        allowed: Statuses that count as success here

    Returns:
        True if the status is allowed

    Raises:
        UploadIncompleteError: 308 outside of allowed
        FileAlreadyUploadedError: 200 or 201 outside of allowed
        UrlNotFoundError: 404
        UploadFailedError: 500, 502, 503 or 504
        UnknownResponseError: any other status
    """
    status = response.status
    if status in allowed:
        return True

    if status == 308:
        raise UploadIncompleteError()
    if status in (200, 201):
        raise FileAlreadyUploadedError(upload_id, url)
    if status == 404:
        raise UrlNotFoundError(url)
    if status in SERVER_FAILURE:
        raise UploadFailedError(status)
    raise UnknownResponseError(response)


def parse_range_end(header: str) -> int:
    """Return the last byte offset named by a ``Range`` header such as ``bytes=0-1023``.

    Raises:
        ValueError: If the header does not end in ``-<digits>``
    """
    match = _RANGE_END.search(header.strip())
    if not match:
        raise ValueError(f"Malformed Range header: {header!r}")
    return int(match.group(1))
