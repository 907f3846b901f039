"""Tests for directory lookup and path creation."""

from notebox.core.store.nodes import NodeStore
from notebox.core.tree.navigation import create_directory_path, find_directory
from notebox.models.node import DirectoryNode


def _directories(store: NodeStore) -> list[DirectoryNode]:
    return [n for n in store.nodes.get() if isinstance(n, DirectoryNode)]


def test_find_directory_ignores_case_and_accents(node_store: NodeStore) -> None:
    resumes = node_store.add_directory("Résumés")

    assert find_directory(node_store, None, "resumes") == resumes
    assert find_directory(node_store, None, "resumes ") is None


def test_find_directory_is_scoped_to_parent(node_store: NodeStore) -> None:
    a = node_store.add_directory("A")
    nested = node_store.add_directory("Notes", parent_id=a.id)
    node_store.add_text("Notes")  # not a directory

    assert find_directory(node_store, a.id, "notes") == nested
    assert find_directory(node_store, None, "notes") is None


def test_create_directory_path_is_idempotent(node_store: NodeStore) -> None:
    leaf = create_directory_path(node_store, "a/b/c")
    assert len(_directories(node_store)) == 3

    again = create_directory_path(node_store, "a/b/c")

    assert again == leaf
    assert len(_directories(node_store)) == 3
    assert node_store.resolve_path(leaf) == "/a/b/c"


def test_create_directory_path_skips_empty_segments(node_store: NodeStore) -> None:
    leaf = create_directory_path(node_store, "/a//b/")

    assert node_store.resolve_path(leaf) == "/a/b"
    assert len(_directories(node_store)) == 2


def test_create_directory_path_reuses_matching_prefix(node_store: NodeStore) -> None:
    create_directory_path(node_store, "Projects/2024")

    leaf = create_directory_path(node_store, "projects/2025")

    assert node_store.resolve_path(leaf) == "/Projects/2025"
    assert len(_directories(node_store)) == 3


def test_create_directory_path_empty_returns_root(node_store: NodeStore) -> None:
    assert create_directory_path(node_store, "//") is None
    assert node_store.nodes.get() == ()
