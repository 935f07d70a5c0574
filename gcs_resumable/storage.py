"""Session storage for the reference resumable upload server."""

import os
import sqlite3
from abc import ABC, abstractmethod
from contextlib import closing
from typing import Any, Optional


class Storage(ABC):
    """Abstract base class for server-side session storage."""

    @abstractmethod
    def create_session(
        self, session_id: str, upload_length: Optional[int], content_type: str
    ) -> None:
        """Create a new upload session."""
        pass

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[dict[str, Any]]:
        """Get session information."""
        pass

    @abstractmethod
    def set_length(self, session_id: str, upload_length: int) -> None:
        """Record the total length once the client announces it."""
        pass

    @abstractmethod
    def update_offset(self, session_id: str, offset: int) -> None:
        """Update the number of bytes received."""
        pass

    @abstractmethod
    def delete_session(self, session_id: str) -> None:
        """Delete a session and its data."""
        pass

    @abstractmethod
    def write_chunk(self, session_id: str, offset: int, data: bytes) -> None:
        """Write data at offset of the session file."""
        pass

    @abstractmethod
    def read_file(self, session_id: str) -> bytes:
        """Read the bytes received so far."""
        pass

    @abstractmethod
    def get_file_path(self, session_id: str) -> str:
        """Get the file path for a session."""
        pass


class SQLiteStorage(Storage):
    """SQLite-based session storage, with received bytes kept in plain files."""

    def __init__(self, db_path: str = "sessions.db", upload_dir: str = "uploads"):
        """Initialize SQLite storage.

        Args:
            db_path: Path to SQLite database file
            upload_dir: Directory to store received bytes
        """
        self.db_path = db_path
        self.upload_dir = upload_dir
        os.makedirs(upload_dir, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with closing(self._connect()) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    upload_length INTEGER,
                    received INTEGER DEFAULT 0,
                    content_type TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    completed BOOLEAN DEFAULT 0
                )
                """
            )
            conn.commit()

    def create_session(
        self, session_id: str, upload_length: Optional[int], content_type: str
    ) -> None:
        with closing(self._connect()) as conn:
            conn.execute(
                "INSERT INTO sessions (session_id, upload_length, content_type) VALUES (?, ?, ?)",
                (session_id, upload_length, content_type),
            )
            conn.commit()

        # Sessions start with an empty file
        with open(self.get_file_path(session_id), "wb"):
            pass

    def get_session(self, session_id: str) -> Optional[dict[str, Any]]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT * FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()

        if row is None:
            return None

        return {
            "session_id": row["session_id"],
            "upload_length": row["upload_length"],
            "offset": row["received"],
            "content_type": row["content_type"] or "",
            "completed": bool(row["completed"]),
        }

    def set_length(self, session_id: str, upload_length: int) -> None:
        with closing(self._connect()) as conn:
            conn.execute(
                "UPDATE sessions SET upload_length = ? WHERE session_id = ?",
                (upload_length, session_id),
            )
            conn.commit()

    def update_offset(self, session_id: str, offset: int) -> None:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT upload_length FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
            if row is None:
                return
            length = row["upload_length"]
            completed = length is not None and offset >= length
            conn.execute(
                "UPDATE sessions SET received = ?, completed = ? WHERE session_id = ?",
                (offset, completed, session_id),
            )
            conn.commit()

    def delete_session(self, session_id: str) -> None:
        with closing(self._connect()) as conn:
            conn.execute("DELETE FROM sessions WHERE session_id = ?", (session_id,))
            conn.commit()

        file_path = self.get_file_path(session_id)
        if os.path.exists(file_path):
            os.remove(file_path)

    def write_chunk(self, session_id: str, offset: int, data: bytes) -> None:
        file_path = self.get_file_path(session_id)
        mode = "r+b" if os.path.exists(file_path) else "wb"
        with open(file_path, mode) as f:
            f.seek(offset)
            f.write(data)

    def read_file(self, session_id: str) -> bytes:
        with open(self.get_file_path(session_id), "rb") as f:
            return f.read()

    def get_file_path(self, session_id: str) -> str:
        return os.path.join(self.upload_dir, session_id)
