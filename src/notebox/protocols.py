"""Protocols for dependency injection in the library model."""

from collections.abc import Callable
from datetime import datetime
from typing import Protocol, runtime_checkable

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


@runtime_checkable
class HostStorageProtocol(Protocol):
    """Protocol for the host storage bridge holding the library document and blobs."""

    async def read_library(self) -> str | None:
        """Return the raw library document, or None if none was ever written."""
        ...

    async def write_library(self, contents: str) -> None:
        """Replace the library document with ``contents``."""
        ...

    def remove_file(self, file_id: str) -> None:
        """Delete the blob stored for ``file_id``."""
        ...

    def now(self) -> datetime:
        """Return the current time, used when stamping new entries."""
        ...
