"""Tests for TagStore lookup and creation."""

from notebox.core.store.tags import TagStore
from tests.unit.fakes import PersistCounter


def test_create_returns_new_id_and_persists(tag_store: TagStore, persist: PersistCounter) -> None:
    tag_id = tag_store.create("work")

    assert tag_id == "t-1"
    assert tag_store.get(tag_id).name == "work"
    assert persist.calls == 1


def test_create_never_merges_equal_names(tag_store: TagStore) -> None:
    first = tag_store.create("Work")
    second = tag_store.create("work")

    assert first != second
    assert len(tag_store.tags.get()) == 2


def test_find_tag_ignores_case_and_accents(tag_store: TagStore) -> None:
    tag_id = tag_store.create("café")

    assert tag_store.find_tag("Cafe").id == tag_id
    assert tag_store.find_tag("CAFÉ").id == tag_id


def test_find_tag_does_not_strip_whitespace(tag_store: TagStore) -> None:
    tag_store.create("café")

    assert tag_store.find_tag("cafe ") is None
    assert tag_store.find_tag("caf") is None


def test_find_tag_returns_first_match(tag_store: TagStore) -> None:
    first = tag_store.create("Ideas")
    tag_store.create("ideas")

    assert tag_store.find_tag("IDEAS").id == first


def test_get_unknown_returns_none(tag_store: TagStore) -> None:
    assert tag_store.get("nope") is None
