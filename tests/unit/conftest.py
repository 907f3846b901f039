"""Shared test fixtures."""

import pytest

from notebox.core.store.files import FileStore
from notebox.core.store.nodes import NodeStore
from notebox.core.store.tags import TagStore
from notebox.model import LibraryModel
from tests.unit.fakes import FakeStorage, PersistCounter, SequentialIds, SteppingClock


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def persist() -> PersistCounter:
    return PersistCounter()


@pytest.fixture
def file_store(storage: FakeStorage, persist: PersistCounter) -> FileStore:
    return FileStore(storage, persist=persist)


@pytest.fixture
def node_store(file_store: FileStore, persist: PersistCounter) -> NodeStore:
    return NodeStore(file_store, clock=SteppingClock(), ids=SequentialIds("n"), persist=persist)


@pytest.fixture
def tag_store(persist: PersistCounter) -> TagStore:
    return TagStore(ids=SequentialIds("t"), persist=persist)


@pytest.fixture
def model(storage: FakeStorage) -> LibraryModel:
    """A model with deterministic ids and clock, and a short status delay."""
    return LibraryModel(storage, ids=SequentialIds(), clock=SteppingClock(), clear_delay=0.05)
