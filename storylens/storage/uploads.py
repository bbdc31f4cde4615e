"""Uploaded image storage with validation and age-based cleanup."""

import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import UploadFile

logger = logging.getLogger(__name__)

_CHUNK_BYTES = 1024 * 1024


class UploadRejected(Exception):
    """Upload failed validation. Carries the HTTP status to answer with."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


@dataclass
class SavedUpload:
    filename: str
    path: str
    size: int

    @property
    def url(self) -> str:
        return f"/uploads/{self.filename}"


class UploadStore:
    """Keeps uploaded images under one directory, served back at /uploads."""

    def __init__(self, base_dir: str, max_bytes: int = 10 * 1024 * 1024):
        self._base_dir = os.path.abspath(base_dir)
        os.makedirs(self._base_dir, exist_ok=True)
        self._max_bytes = max_bytes

    @property
    def base_dir(self) -> str:
        return self._base_dir

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def get_path(self, filename: str) -> str:
        return os.path.join(self._base_dir, os.path.basename(filename))

    def file_exists(self, filename: str) -> bool:
        return os.path.isfile(self.get_path(filename))

    async def save(self, file: Optional[UploadFile]) -> SavedUpload:
        """Validate and write an uploaded image to disk.

        Raises UploadRejected for a missing file, a non-image MIME type, or a
        file larger than max_bytes. Nothing is left on disk when rejected.
        """
        if file is None:
            raise UploadRejected(400, "No image file provided")
        if not file.content_type or not file.content_type.startswith("image/"):
            raise UploadRejected(400, "Only image files are allowed")

        filename = self._generate_filename(file.filename)
        path = self.get_path(filename)

        total = 0
        try:
            with open(path, "wb") as dst:
                while True:
                    chunk = await file.read(_CHUNK_BYTES)
                    if not chunk:
                        break
                    total += len(chunk)
                    if total > self._max_bytes:
                        raise UploadRejected(
                            413,
                            f"File too large (max {self._max_bytes // (1024 * 1024)} MB)",
                        )
                    dst.write(chunk)
        except BaseException:
            if os.path.exists(path):
                os.remove(path)
            raise

        logger.info(f"Saved upload {filename} ({total} bytes)")
        return SavedUpload(filename=filename, path=path, size=total)

    def cleanup_expired(self, max_age_seconds: float, keep: Iterable[str] = ()) -> int:
        """Remove uploaded files older than max_age_seconds. Returns count removed.

        Filenames in ``keep`` are never removed, whatever their age.
        """
        keep = set(keep)
        now = time.time()
        removed = 0
        for entry in os.listdir(self._base_dir):
            path = os.path.join(self._base_dir, entry)
            if entry in keep or not os.path.isfile(path):
                continue
            if now - os.path.getmtime(path) > max_age_seconds:
                os.remove(path)
                removed += 1
        return removed

    @staticmethod
    def _generate_filename(original: Optional[str]) -> str:
        ext = os.path.splitext(original or "")[1].lower()
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{unique_suffix}{ext}"
