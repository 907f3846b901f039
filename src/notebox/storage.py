"""Host storage on the local filesystem."""

import asyncio
import os
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from notebox.config import FILES_DIRNAME, LIBRARY_FILENAME


class FileSystemStorage:
    """Keep the library document and its blobs under one data directory.

    Layout::

        <datadir>/library.json
        <datadir>/files/<file id>

    The document is replaced atomically: contents go to a temporary file in
    the same directory, which is then renamed over the old document.
    """

    def __init__(self, datadir: str | Path) -> None:
        self.datadir = Path(datadir).expanduser().resolve()
        self.library_path = self.datadir / LIBRARY_FILENAME
        self.files_dir = self.datadir / FILES_DIRNAME
        logger.debug("Storage ready, datadir {!r}", str(self.datadir))

    async def read_library(self) -> str | None:
        return await asyncio.to_thread(self._read_library)

    async def write_library(self, contents: str) -> None:
        await asyncio.to_thread(self._write_library, contents)

    def blob_path(self, file_id: str) -> Path:
        """Path of the blob for ``file_id``, refusing ids that escape files/."""
        path = (self.files_dir / file_id).resolve()
        if path.parent != self.files_dir.resolve():
            msg = f"Path escapes files directory: {file_id!r}"
            raise ValueError(msg)
        return path

    def store_blob(self, file_id: str, data: bytes) -> Path:
        path = self.blob_path(file_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug("Stored blob {} ({} bytes)", file_id, len(data))
        return path

    def remove_file(self, file_id: str) -> None:
        path = self.blob_path(file_id)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Blob {} already missing from {}", file_id, self.files_dir)
            return
        logger.debug("Removed blob {}", file_id)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _read_library(self) -> str | None:
        try:
            return self.library_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write_library(self, contents: str) -> None:
        self.datadir.mkdir(parents=True, exist_ok=True)
        tmp_path = self.library_path.with_name(self.library_path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(contents)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, self.library_path)
