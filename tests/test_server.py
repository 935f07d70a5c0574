"""Test suite for the reference server."""

import json
import os
import shutil
import tempfile

import pytest

from gcs_resumable.server import ResumableUploadServer
from gcs_resumable.storage import SQLiteStorage


class TestResumableUploadServer:
    """Tests for ResumableUploadServer."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for tests."""
        temp_dir = tempfile.mkdtemp()
        yield temp_dir
        shutil.rmtree(temp_dir)

    @pytest.fixture
    def storage(self, temp_dir):
        """Create a storage instance for tests."""
        db_path = os.path.join(temp_dir, "test.db")
        upload_dir = os.path.join(temp_dir, "uploads")
        return SQLiteStorage(db_path=db_path, upload_dir=upload_dir)

    @pytest.fixture
    def server(self, storage):
        """Create a server instance for tests."""
        return ResumableUploadServer(storage=storage, base_path="/upload")

    @pytest.fixture
    def session(self, storage):
        """Create a 20-byte session."""
        storage.create_session("s1", 20, "text/plain")
        return "/upload/s1"

    def put(self, server, path, content_range, body=b""):
        return server.handle_request("PUT", path, {"Content-Range": content_range}, body)

    def test_handle_create(self, server, storage):
        """Test POST creates a session and returns its location."""
        headers = {"X-Upload-Content-Length": "1024", "X-Upload-Content-Type": "video/mp4"}

        status, response_headers, body = server.handle_request("POST", "/upload", headers)

        assert status == 200
        location = response_headers["Location"]
        assert location.startswith("/upload/")
        session = storage.get_session(location.split("/")[-1])
        assert session["upload_length"] == 1024
        assert session["content_type"] == "video/mp4"

    def test_handle_create_invalid_length(self, server):
        """Test POST with an invalid length header."""
        status, _, _ = server.handle_request(
            "POST", "/upload", {"X-Upload-Content-Length": "abc"}
        )
        assert status == 400

    def test_put_chunk(self, server, storage, session):
        """Test a chunk is stored and answered with 308 and the received range."""
        status, headers, _ = self.put(server, session, "bytes 0-9/20", b"0123456789")

        assert status == 308
        assert headers["Range"] == "bytes=0-9"
        assert storage.read_file("s1") == b"0123456789"

    def test_put_last_chunk_completes(self, server, storage, session):
        """Test the final chunk is answered with 200 and a JSON body."""
        self.put(server, session, "bytes 0-9/20", b"0123456789")
        status, headers, body = self.put(server, session, "bytes 10-19/20", b"ABCDEFGHIJ")

        assert status == 200
        assert json.loads(body)["size"] == "20"
        assert storage.read_file("s1") == b"0123456789ABCDEFGHIJ"
        assert storage.get_session("s1")["completed"] is True

    def test_status_probe(self, server, session):
        """Test an empty probe reports the received range."""
        status, headers, _ = self.put(server, session, "bytes */20")
        assert status == 308
        assert "Range" not in headers

        self.put(server, session, "bytes 0-9/20", b"0123456789")
        status, headers, _ = self.put(server, session, "bytes */20")
        assert status == 308
        assert headers["Range"] == "bytes=0-9"

    def test_status_probe_completed(self, server, session):
        """Test a probe on a completed upload returns 200."""
        self.put(server, session, "bytes 0-19/20", b"0123456789ABCDEFGHIJ")
        status, _, _ = self.put(server, session, "bytes */20")
        assert status == 200

    def test_empty_upload(self, server, storage):
        """Test a zero-byte upload completes with a single probe."""
        storage.create_session("empty", None, "")
        status, _, _ = self.put(server, "/upload/empty", "bytes */0")
        assert status == 200

    def test_overlapping_chunk(self, server, storage, session):
        """Test bytes the server already holds are discarded."""
        self.put(server, session, "bytes 0-9/20", b"0123456789")
        status, headers, _ = self.put(server, session, "bytes 5-14/20", b"56789ABCDE")

        assert status == 308
        assert headers["Range"] == "bytes=0-14"
        assert storage.read_file("s1") == b"0123456789ABCDE"

    def test_gap_rejected(self, server, session):
        """Test a range starting past the received bytes."""
        status, _, _ = self.put(server, session, "bytes 10-19/20", b"ABCDEFGHIJ")
        assert status == 400

    def test_body_length_mismatch(self, server, session):
        """Test the body must match the Content-Range."""
        status, _, _ = self.put(server, session, "bytes 0-9/20", b"short")
        assert status == 400

    def test_length_mismatch(self, server, session):
        """Test the total must match the session length."""
        status, _, _ = self.put(server, session, "bytes 0-9/30", b"0123456789")
        assert status == 400

    def test_invalid_content_range(self, server, session):
        """Test a malformed Content-Range header."""
        status, _, _ = self.put(server, session, "0-9", b"0123456789")
        assert status == 400

    def test_unknown_session(self, server):
        """Test PUT to an unknown session."""
        status, _, _ = self.put(server, "/upload/nonexistent", "bytes */20")
        assert status == 404

    def test_handle_delete(self, server, storage, session):
        """Test DELETE cancels a session."""
        status, _, _ = server.handle_request("DELETE", session, {})
        assert status == 499
        assert storage.get_session("s1") is None

    def test_handle_delete_not_found(self, server):
        """Test DELETE for an unknown session."""
        status, _, _ = server.handle_request("DELETE", "/upload/nonexistent", {})
        assert status == 404

    def test_route_not_found(self, server):
        """Test an unknown route."""
        status, _, _ = server.handle_request("GET", "/other", {})
        assert status == 404
