"""Tests for the persistence coordinator: write serialization, status, load."""

import asyncio
import json

import pytest

from notebox.core.persistence.coordinator import PersistenceCoordinator
from notebox.core.store.files import FileStore
from notebox.core.store.nodes import NodeStore
from notebox.core.store.tags import TagStore
from notebox.errors import LibraryValidationError
from notebox.models.node import File, Status
from tests.unit.fakes import FakeStorage, SequentialIds, SteppingClock


def _coordinator(storage: FakeStorage, *, clear_delay: float = 0.05) -> PersistenceCoordinator:
    files = FileStore(storage)
    tags = TagStore(ids=SequentialIds("t"))
    nodes = NodeStore(files, clock=SteppingClock(), ids=SequentialIds("n"))
    return PersistenceCoordinator(
        storage, nodes, files, tags, ids=SequentialIds("s"), clear_delay=clear_delay
    )


@pytest.mark.asyncio
async def test_save_writes_snapshot_with_version() -> None:
    storage = FakeStorage()
    coordinator = _coordinator(storage)
    coordinator.nodes.add_text("hello")

    await coordinator.save()

    data = json.loads(storage.document)
    assert data["version"] == 1
    assert [n["content"] for n in data["nodes"]] == ["hello"]
    coordinator.close()


@pytest.mark.asyncio
async def test_concurrent_saves_never_overlap() -> None:
    storage = FakeStorage(write_delay=0.01)
    coordinator = _coordinator(storage)

    await asyncio.gather(*(coordinator.save() for _ in range(5)))

    assert len(storage.writes) == 5
    for (_, prev_end), (next_start, _) in zip(storage.intervals, storage.intervals[1:]):
        assert prev_end <= next_start
    coordinator.close()


@pytest.mark.asyncio
async def test_queued_save_writes_state_at_execution_time() -> None:
    storage = FakeStorage(write_delay=0.01)
    coordinator = _coordinator(storage)

    first = asyncio.create_task(coordinator.save())
    await asyncio.sleep(0)
    second = asyncio.create_task(coordinator.save())
    await asyncio.sleep(0)
    coordinator.nodes.add_text("late")
    await asyncio.gather(first, second)

    assert json.loads(storage.writes[0])["nodes"] == []
    assert len(json.loads(storage.writes[1])["nodes"]) == 1
    coordinator.close()


@pytest.mark.asyncio
async def test_saving_flag_and_status_sequence() -> None:
    storage = FakeStorage()
    coordinator = _coordinator(storage)
    flags: list[bool] = []
    statuses: list[Status | None] = []
    coordinator.saving.subscribe(flags.append)
    coordinator.status.subscribe(statuses.append)

    await coordinator.save()

    assert flags == [True, False]
    assert statuses[0].message == "Saving…"
    assert statuses[0].saving is True
    assert statuses[1].message.startswith("Saved (")
    assert statuses[1].message.endswith(" ms)")
    assert statuses[1].elapsed_ms is not None
    assert statuses[0].id != statuses[1].id
    coordinator.close()


@pytest.mark.asyncio
async def test_saved_status_is_cleared_after_delay() -> None:
    coordinator = _coordinator(FakeStorage(), clear_delay=0.01)

    await coordinator.save()
    assert coordinator.status.get() is not None

    await asyncio.sleep(0.05)
    assert coordinator.status.get() is None


@pytest.mark.asyncio
async def test_clear_keeps_newer_status() -> None:
    coordinator = _coordinator(FakeStorage(), clear_delay=0.01)

    await coordinator.save()
    newer = Status(id="other", message="Importing")
    coordinator.status.set(newer)
    await asyncio.sleep(0.05)

    assert coordinator.status.get() == newer


@pytest.mark.asyncio
async def test_failed_write_releases_guard_and_propagates() -> None:
    storage = FakeStorage()
    storage.fail_writes = 1
    coordinator = _coordinator(storage)

    with pytest.raises(OSError, match="disk full"):
        await coordinator.save()

    assert coordinator.saving.get() is False
    assert coordinator.status.get().message == "Save failed"
    await asyncio.wait_for(coordinator.save(), timeout=1)
    assert len(storage.writes) == 1
    coordinator.close()


@pytest.mark.asyncio
async def test_waiters_proceed_after_failed_write() -> None:
    storage = FakeStorage(write_delay=0.01)
    storage.fail_writes = 1
    coordinator = _coordinator(storage)

    results = await asyncio.gather(
        coordinator.save(), coordinator.save(), return_exceptions=True
    )

    assert isinstance(results[0], OSError)
    assert results[1] is None
    assert len(storage.writes) == 1
    coordinator.close()


@pytest.mark.asyncio
async def test_request_save_runs_in_background_and_flush_waits() -> None:
    storage = FakeStorage(write_delay=0.01)
    coordinator = _coordinator(storage)

    coordinator.request_save()
    coordinator.request_save()
    assert storage.writes == []

    await coordinator.flush()
    assert len(storage.writes) == 2
    coordinator.close()


@pytest.mark.asyncio
async def test_background_save_failure_is_logged_not_raised() -> None:
    storage = FakeStorage()
    storage.fail_writes = 1
    coordinator = _coordinator(storage)

    coordinator.request_save()
    await coordinator.flush()

    assert storage.writes == []
    coordinator.close()


def test_request_save_without_loop_is_deferred_to_flush() -> None:
    storage = FakeStorage()
    coordinator = _coordinator(storage)

    coordinator.request_save()
    assert storage.writes == []

    async def later() -> None:
        await coordinator.flush()
        coordinator.close()

    asyncio.run(later())
    assert len(storage.writes) == 1


@pytest.mark.asyncio
async def test_load_seeds_stores() -> None:
    source = FakeStorage()
    writer = _coordinator(source)
    d = writer.nodes.add_directory("Docs")
    writer.nodes.add_image(File(id="f1", type="image/png"), parent_id=d.id)
    writer.tags.create("work")
    await writer.save()
    writer.close()

    reader = _coordinator(FakeStorage(source.document))
    library = await reader.load()

    assert len(library.nodes) == 2
    assert reader.nodes.nodes.get() == writer.nodes.nodes.get()
    assert reader.files.files.get() == writer.files.files.get()
    assert reader.tags.find_tag("WORK") is not None
    assert reader.nodes.resolve_path(d.id) == "/Docs"


@pytest.mark.asyncio
async def test_load_missing_document_gives_empty_library() -> None:
    coordinator = _coordinator(FakeStorage(None))

    library = await coordinator.load()

    assert library.nodes == ()
    assert coordinator.nodes.nodes.get() == ()


@pytest.mark.asyncio
async def test_invalid_document_leaves_stores_untouched() -> None:
    storage = FakeStorage('{"nodes": [{"id": "x", "type": "bogus"}]}')
    coordinator = _coordinator(storage)
    existing = coordinator.nodes.add_text("keep me")

    with pytest.raises(LibraryValidationError):
        await coordinator.load()

    assert coordinator.nodes.nodes.get() == (existing,)
