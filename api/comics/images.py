"""
Cover image uploads.

Uploaded files are written under the public static root with a random name
(32 hex chars + the original extension). The original filename is never used
on disk, so concurrent uploads cannot collide and client-supplied paths
cannot escape the upload directory.
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path

from fastapi import HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from core.settings import normalize_upload_dir

logger = logging.getLogger(__name__)


def _file_ext(filename: str) -> str:
    return Path(filename).suffix


def generate_filename(original_name: str) -> str:
    return secrets.token_hex(16) + _file_ext(original_name)


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Max is {max_bytes} bytes.",
            )

    return bytes(buf)


class ImageStore:
    def __init__(self, directory: Path, url_prefix: str = "/img/") -> None:
        self.directory = Path(directory)
        self.url_prefix = normalize_upload_dir(url_prefix)

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def public_path(self, filename: str) -> str:
        # An empty filename still yields the bare prefix (e.g. "/img/").
        return self.url_prefix + (filename or "")

    def _write(self, path: Path, data: bytes) -> None:
        self.ensure_directory()
        path.write_bytes(data)

    async def save(self, original_name: str, data: bytes) -> str:
        """
        Write `data` under a generated name and return that name.

        OSError from the write is not caught here.
        """
        filename = generate_filename(original_name)
        await run_in_threadpool(self._write, self.directory / filename, data)
        logger.info("image_saved filename=%s size_bytes=%s", filename, len(data))
        return filename
