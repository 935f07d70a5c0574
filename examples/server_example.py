#!/usr/bin/env python3
"""Example resumable upload server for local testing."""

import logging
from http.server import HTTPServer

from gcs_resumable import ResumableHTTPRequestHandler, ResumableUploadServer
from gcs_resumable.storage import SQLiteStorage


def main():
    """Run the resumable upload server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    storage = SQLiteStorage(db_path="sessions.db", upload_dir="uploads")
    upload_server = ResumableUploadServer(storage=storage, base_path="/upload")

    class Handler(ResumableHTTPRequestHandler):
        pass

    Handler.upload_server = upload_server

    host = "0.0.0.0"
    port = 8080
    server = HTTPServer((host, port), Handler)
    print(f"Resumable upload server running on http://{host}:{port}")
    print(f"Create a session with: curl -i -X POST http://{host}:{port}/upload")
    print("Press Ctrl+C to stop")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down server...")
        server.shutdown()


if __name__ == "__main__":
    main()
