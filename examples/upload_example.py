#!/usr/bin/env python3
"""Example resumable upload of a local file.

Run it, interrupt it with Ctrl+C, and run it again: the second run asks the
server how far the first one got and continues from there.
"""

import asyncio
import logging
import os
import sys

from gcs_resumable import ChunkProgress, FileStorage, Upload, UploadFailedError


def progress_callback(progress: ChunkProgress):
    """Display upload progress."""
    bar_length = 50
    filled = int(bar_length * progress.uploaded_bytes / progress.total_bytes)
    bar = "=" * filled + "-" * (bar_length - filled)
    print(
        f"\rProgress: [{bar}] {progress.progress_percent:.1f}% "
        f"({progress.uploaded_bytes}/{progress.total_bytes} bytes)",
        end="",
    )
    if progress.is_last_chunk:
        print()


async def run(session_url: str, file_path: str) -> None:
    upload = Upload(
        id=os.path.abspath(file_path),
        url=session_url,
        file=file_path,
        chunk_size=4 * 262144,  # 1MB chunks
        storage=FileStorage(".upload_progress.json"),
        content_type="application/octet-stream",
        on_chunk_upload=progress_callback,
    )

    try:
        response = await upload.start()
    except UploadFailedError as e:
        print(f"\n{e}. Run again to resume.")
        sys.exit(1)

    print(f"Upload complete: HTTP {response.status}")


def main():
    """Run the upload example."""
    if len(sys.argv) < 3:
        print("Usage: python upload_example.py <session_url> <file_path>")
        print(
            "Example: python upload_example.py "
            "http://localhost:8080/upload/abc123 /path/to/file.bin"
        )
        sys.exit(1)

    session_url = sys.argv[1]
    file_path = sys.argv[2]

    if not os.path.exists(file_path):
        print(f"Error: File not found: {file_path}")
        sys.exit(1)

    logging.basicConfig(level=logging.WARNING)
    asyncio.run(run(session_url, file_path))


if __name__ == "__main__":
    main()
