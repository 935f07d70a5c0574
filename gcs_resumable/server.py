"""Reference resumable upload server.

A small endpoint speaking the Content-Range resumable upload protocol,
for local development and end-to-end tests of the upload engine.
"""

import json
import logging
import re
import uuid
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional

from gcs_resumable.storage import SQLiteStorage, Storage

logger = logging.getLogger(__name__)

_CONTENT_RANGE = re.compile(r"^bytes (?:\*|(\d+)-(\d+))/(\*|\d+)$")

# Status sent by the server while the upload is still incomplete
RESUME_INCOMPLETE = 308


class ResumableUploadServer:
    """Resumable upload server implementation.

    Protocol:
        - ``POST {base_path}`` creates a session and answers with its Location.
        - ``PUT {base_path}/<id>`` with ``Content-Range: bytes a-b/total`` stores
          bytes a..b and answers 308 with ``Range: bytes=0-<last>`` until the
          last byte arrives, then 200.
        - ``PUT {base_path}/<id>`` with ``Content-Range: bytes */total`` and an
          empty body is a status probe: 308 with the received range, or 200
          when the upload is complete.
        - ``DELETE {base_path}/<id>`` cancels the session (499).

    Example:
        >>> storage = SQLiteStorage()
        >>> server = ResumableUploadServer(storage=storage, base_path="/upload")
        >>> status, headers, body = server.handle_request("POST", "/upload", {}, b"")
    """

    def __init__(self, storage: Optional[Storage] = None, base_path: str = "/upload"):
        """Initialize server.

        Args:
            storage: Storage backend (defaults to SQLiteStorage)
            base_path: Base URL path for sessions
        """
        self.storage = storage or SQLiteStorage()
        self.base_path = base_path.rstrip("/")

    def handle_request(
        self, method: str, path: str, headers: dict[str, str], body: bytes = b""
    ) -> tuple[int, dict[str, str], bytes]:
        """Handle an incoming HTTP request.

        Args:
            method: HTTP method
            path: Request path
            headers: Request headers
            body: Request body

        Returns:
            Tuple of (status_code, response_headers, response_body)
        """
        logger.info(f"Received {method} request for {path}")

        headers = {k.lower(): v for k, v in headers.items()}

        if method == "POST" and path == self.base_path:
            return self._handle_create(headers)

        if path.startswith(self.base_path + "/"):
            session_id = path[len(self.base_path) + 1 :]
            if method == "PUT":
                return self._handle_put(session_id, headers, body)
            if method == "DELETE":
                return self._handle_delete(session_id)

        logger.warning(f"Route not found: {method} {path}")
        return (404, {}, b"Not Found")

    def create_session(self, upload_length: Optional[int] = None, content_type: str = "") -> str:
        """Create a session directly and return its path."""
        session_id = uuid.uuid4().hex
        self.storage.create_session(session_id, upload_length, content_type)
        logger.info(f"Created session {session_id} with length {upload_length}")
        return f"{self.base_path}/{session_id}"

    def _handle_create(self, headers: dict[str, str]) -> tuple[int, dict[str, str], bytes]:
        length_header = headers.get("x-upload-content-length")
        upload_length = None
        if length_header is not None:
            try:
                upload_length = int(length_header)
            except ValueError:
                logger.error(f"Invalid X-Upload-Content-Length header: {length_header}")
                return (400, {}, b"Invalid X-Upload-Content-Length header")

        location = self.create_session(upload_length, headers.get("x-upload-content-type", ""))
        return (200, {"Location": location}, b"")

    def _handle_put(
        self, session_id: str, headers: dict[str, str], body: bytes
    ) -> tuple[int, dict[str, str], bytes]:
        session = self.storage.get_session(session_id)
        if not session:
            logger.warning(f"Session not found: {session_id}")
            return (404, {}, b"Session not found")

        content_range = headers.get("content-range", "").strip()
        match = _CONTENT_RANGE.match(content_range)
        if not match:
            logger.error(f"Invalid Content-Range header: {content_range!r}")
            return (400, {}, b"Invalid Content-Range header")

        first, last, total = match.groups()
        if total != "*":
            total_length = int(total)
            if session["upload_length"] is None:
                self.storage.set_length(session_id, total_length)
                session["upload_length"] = total_length
            elif session["upload_length"] != total_length:
                logger.error(
                    f"Length mismatch for {session_id}: "
                    f"expected {session['upload_length']}, got {total_length}"
                )
                return (400, {}, b"Upload length mismatch")

        if session["completed"]:
            return self._completed(session)

        offset = session["offset"]
        if first is None:
            if body:
                return (400, {}, b"Status request must not carry a body")
            if session["upload_length"] is not None and offset >= session["upload_length"]:
                self.storage.update_offset(session_id, offset)
                return self._completed(self.storage.get_session(session_id))
            return self._incomplete(session_id, offset)

        first, last = int(first), int(last)
        if last < first or len(body) != last - first + 1:
            logger.error(f"Body of {len(body)} bytes does not match range {first}-{last}")
            return (400, {}, b"Body does not match Content-Range")

        if first > offset:
            logger.error(
                f"Gap in upload {session_id}: have {offset} bytes, got range {first}-{last}"
            )
            return (400, {}, b"Content-Range starts past the received bytes")

        # Bytes the server already holds are discarded
        if last >= offset:
            self.storage.write_chunk(session_id, offset, body[offset - first :])
            offset = last + 1
            self.storage.update_offset(session_id, offset)

        logger.info(f"PUT session {session_id}: received {offset}/{session['upload_length']}")

        session = self.storage.get_session(session_id)
        if session["completed"]:
            return self._completed(session)
        return self._incomplete(session_id, offset)

    def _incomplete(self, session_id: str, offset: int) -> tuple[int, dict[str, str], bytes]:
        logger.debug(f"Session {session_id} incomplete at {offset} bytes")
        response_headers = {}
        if offset > 0:
            response_headers["Range"] = f"bytes=0-{offset - 1}"
        return (RESUME_INCOMPLETE, response_headers, b"")

    def _completed(self, session: dict[str, Any]) -> tuple[int, dict[str, str], bytes]:
        body = json.dumps(
            {
                "id": session["session_id"],
                "size": str(session["upload_length"]),
                "contentType": session["content_type"],
            }
        ).encode("utf-8")
        return (200, {"Content-Type": "application/json"}, body)

    def _handle_delete(self, session_id: str) -> tuple[int, dict[str, str], bytes]:
        if not self.storage.get_session(session_id):
            logger.warning(f"Session not found for deletion: {session_id}")
            return (404, {}, b"Session not found")

        self.storage.delete_session(session_id)
        logger.info(f"Cancelled session {session_id}")
        return (499, {}, b"")


class ResumableHTTPRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler for ResumableUploadServer."""

    upload_server: ResumableUploadServer = None

    def do_POST(self) -> None:
        """Handle POST request."""
        self._handle_request("POST")

    def do_PUT(self) -> None:
        """Handle PUT request."""
        self._handle_request("PUT")

    def do_DELETE(self) -> None:
        """Handle DELETE request."""
        self._handle_request("DELETE")

    def _handle_request(self, method: str) -> None:
        body = b""
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length > 0:
            body = self.rfile.read(content_length)

        status, response_headers, response_body = self.upload_server.handle_request(
            method, self.path, dict(self.headers), body
        )

        self.send_response(status)
        for key, value in response_headers.items():
            if key.lower() != "content-length":
                self.send_header(key, value)
        self.send_header("Content-Length", str(len(response_body)))
        self.end_headers()
        if response_body:
            self.wfile.write(response_body)

    def log_message(self, format: str, *args: Any) -> None:
        """Suppress default logging."""
        pass
