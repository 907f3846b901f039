"""Blob metadata referenced by image and anchor nodes."""

from collections.abc import Callable, Iterable

from loguru import logger

from notebox.models.node import File
from notebox.observable import Observable
from notebox.protocols import HostStorageProtocol


class FileStore:
    """Copy-on-write collection of File records.

    Args:
        storage: Host storage, asked to delete blobs on removal.
        persist: Called after every mutation that should reach disk.
    """

    def __init__(
        self,
        storage: HostStorageProtocol,
        *,
        persist: Callable[[], None] | None = None,
    ) -> None:
        self.storage = storage
        self.files: Observable[tuple[File, ...]] = Observable(())
        self._persist = persist or (lambda: None)

    def add(self, file: File) -> None:
        """Register a File record.

        Raises:
            ValueError: A File with the same id is already registered.
        """
        if self.get(file.id) is not None:
            msg = f"Duplicate file id: {file.id!r}"
            raise ValueError(msg)
        self.files.set((*self.files.get(), file))
        logger.debug("Added file {} ({})", file.id, file.type)

    def get(self, file_id: str) -> File | None:
        return next((f for f in self.files.get() if f.id == file_id), None)

    def remove(self, file_id: str) -> None:
        """Delete the blob from host storage, then drop the record.

        Unknown ids are ignored. If the host delete raises, the record is
        kept and the error propagates to the caller.
        """
        found = self.get(file_id)
        if found is None:
            logger.debug("File {} already removed", file_id)
            return

        self.storage.remove_file(found.id)

        self.files.set(tuple(f for f in self.files.get() if f.id != file_id))
        logger.debug("Removed file {}", file_id)
        self._persist()

    def reset(self, files: Iterable[File]) -> None:
        self.files.set(tuple(files))
