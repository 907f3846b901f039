"""Load the library document and write it back, one write at a time."""

import asyncio
import time

from loguru import logger

from notebox.config import STATUS_CLEAR_DELAY
from notebox.core.persistence.codec import decode_library, encode_library
from notebox.core.store.files import FileStore
from notebox.core.store.nodes import NodeStore
from notebox.core.store.tags import TagStore
from notebox.ids import new_id
from notebox.models.node import Library, Status
from notebox.observable import Observable
from notebox.protocols import HostStorageProtocol, IdFactory


class PersistenceCoordinator:
    """Serialize the stores to host storage and hydrate them back.

    Writes never overlap: a ``save()`` issued while another is in flight
    waits for it to finish and then writes whatever the stores hold at that
    moment. Every finished save publishes a "Saved" status that is cleared
    after ``clear_delay`` seconds unless a newer status replaced it.
    """

    def __init__(
        self,
        storage: HostStorageProtocol,
        nodes: NodeStore,
        files: FileStore,
        tags: TagStore,
        *,
        ids: IdFactory = new_id,
        clear_delay: float = STATUS_CLEAR_DELAY,
    ) -> None:
        self.storage = storage
        self.nodes = nodes
        self.files = files
        self.tags = tags
        self.clear_delay = clear_delay
        self.saving: Observable[bool] = Observable(False)
        self.status: Observable[Status | None] = Observable(None)
        self._ids = ids
        self._in_flight: asyncio.Future[None] | None = None
        self._requested: set[asyncio.Task[None]] = set()
        self._deferred = False
        self._clear_timers: dict[str, asyncio.TimerHandle] = {}

    async def save(self) -> None:
        """Write the current snapshot, after any save already in flight.

        A failing write propagates to the caller; the in-flight guard is
        released either way.
        """
        while self._in_flight is not None:
            await asyncio.shield(self._in_flight)

        loop = asyncio.get_running_loop()
        in_flight: asyncio.Future[None] = loop.create_future()
        self._in_flight = in_flight
        self.saving.set(True)
        self.status.set(Status(id=self._ids(), message="Saving…", saving=True))
        started = time.perf_counter()

        try:
            contents = encode_library(
                self.nodes.nodes.get(), self.files.files.get(), self.tags.tags.get()
            )
            await self.storage.write_library(contents)
        except Exception:
            self._publish_transient(Status(id=self._ids(), message="Save failed"))
            raise
        finally:
            self._in_flight = None
            self.saving.set(False)
            in_flight.set_result(None)

        elapsed_ms = round((time.perf_counter() - started) * 1000)
        logger.debug("Library saved in {} ms ({} bytes)", elapsed_ms, len(contents))
        self._publish_transient(
            Status(id=self._ids(), message=f"Saved ({elapsed_ms} ms)", elapsed_ms=elapsed_ms)
        )

    def request_save(self) -> None:
        """Schedule a save from synchronous code.

        Failures of scheduled saves are logged. Without a running event loop
        the request is kept until the next ``flush()``.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._deferred = True
            logger.debug("No running event loop, save deferred until flush()")
            return

        task = loop.create_task(self.save())
        self._requested.add(task)
        task.add_done_callback(self._on_requested_done)

    async def flush(self) -> None:
        """Wait until every requested save has finished."""
        if self._deferred:
            self._deferred = False
            self.request_save()
        while self._requested:
            await asyncio.gather(*self._requested, return_exceptions=True)

    async def load(self) -> Library:
        """Read, validate and adopt the persisted library.

        A missing document yields an empty library.

        Raises:
            LibraryValidationError: The document is malformed. No store is
                touched in that case.
        """
        raw = await self.storage.read_library()
        if raw is None:
            logger.debug("No library document found, starting with an empty library")
            library = Library()
        else:
            library = decode_library(raw)

        self.nodes.reset(library.nodes)
        self.files.reset(library.files)
        self.tags.reset(library.tags)
        logger.debug(
            "Loaded library: {} nodes, {} files, {} tags",
            len(library.nodes), len(library.files), len(library.tags),
        )
        return library

    def close(self) -> None:
        """Cancel pending status clears."""
        for handle in self._clear_timers.values():
            handle.cancel()
        self._clear_timers.clear()

    def _publish_transient(self, status: Status) -> None:
        self.status.set(status)
        loop = asyncio.get_running_loop()
        self._clear_timers[status.id] = loop.call_later(
            self.clear_delay, self._clear_status, status.id
        )

    def _clear_status(self, status_id: str) -> None:
        self._clear_timers.pop(status_id, None)
        current = self.status.get()
        if current is not None and current.id == status_id:
            self.status.set(None)

    def _on_requested_done(self, task: asyncio.Task[None]) -> None:
        self._requested.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("Background save failed")
