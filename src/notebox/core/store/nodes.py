"""Ordered node collection forming a forest of directories and content."""

from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime
from typing import Any, TypeVar

from loguru import logger

from notebox.core.store.files import FileStore
from notebox.errors import BrokenParentError, NodeNotFoundError
from notebox.ids import new_id
from notebox.models.node import (
    AnchorNode,
    DirectoryNode,
    File,
    ImageNode,
    Node,
    PseudoDirectoryNode,
    ReservedID,
    TextNode,
)
from notebox.observable import Observable
from notebox.protocols import Clock, IdFactory

N = TypeVar("N", bound=Node)

# Fields that only the store itself may assign. File references are fixed for a
# node's lifetime.
_FROZEN_FIELDS = frozenset(
    {"id", "index", "created", "modified", "parent_id", "file_id", "content_image_file_id"}
)


def _normalize_tags(tags: Iterable[str] | None) -> tuple[str, ...] | None:
    if tags is None:
        return None
    normalized = tuple(tags)
    return normalized or None


def _file_refs(node: Node) -> tuple[str, ...]:
    if isinstance(node, ImageNode):
        return (node.file_id,)
    if isinstance(node, AnchorNode) and node.content_image_file_id:
        return (node.content_image_file_id,)
    return ()


class NodeStore:
    """Copy-on-write store of every node in the library.

    ``index`` is maintained globally: a new node gets the current node count,
    and removing a node shifts every higher index down by one, so the indices
    always form 0..N-1.

    Args:
        files: FileStore receiving cascaded removals.
        clock: Source of creation/modification timestamps.
        ids: Source of new node ids.
        persist: Called after every mutation that should reach disk.
    """

    def __init__(
        self,
        files: FileStore,
        *,
        clock: Clock,
        ids: IdFactory = new_id,
        persist: Callable[[], None] | None = None,
    ) -> None:
        self.files = files
        self.nodes: Observable[tuple[Node, ...]] = Observable(())
        self._clock = clock
        self._ids = ids
        self._persist = persist or (lambda: None)

    # --- Lookups ---

    def get_node(self, node_id: str | None) -> Node | PseudoDirectoryNode | None:
        """Return the node with ``node_id``; None maps to the library root."""
        if node_id is None:
            return PseudoDirectoryNode()
        return self._find(node_id)

    def get_child_nodes(self, parent_id: str | None) -> tuple[Node, ...]:
        """Direct children of ``parent_id`` (None for root items), by index."""
        children = [n for n in self.nodes.get() if n.parent_id == parent_id]
        return tuple(sorted(children, key=lambda n: n.index))

    def get_child_directories(self, parent_id: str | None) -> tuple[DirectoryNode, ...]:
        return tuple(n for n in self.get_child_nodes(parent_id) if isinstance(n, DirectoryNode))

    def next_index(self) -> int:
        return len(self.nodes.get())

    def resolve_path(self, directory_id: str | None) -> str:
        """Build the absolute ``/``-joined path of a directory.

        The Trash id resolves to "Trash" without consulting the store.

        Raises:
            BrokenParentError: A directory in the chain is missing.
        """
        if directory_id == ReservedID.TRASH:
            return "Trash"

        names: list[str] = []
        current = directory_id
        while current is not None:
            node = self._find(current)
            if not isinstance(node, DirectoryNode):
                msg = f"Cannot resolve path: {current!r} is not a stored directory"
                raise BrokenParentError(msg)
            names.append(node.name)
            current = node.parent_id

        return "/" + "/".join(reversed(names))

    # --- Mutations ---

    def add(self, node: Node) -> None:
        """Append a fully built node.

        Raises:
            ValueError: The id is taken, the index is not ``next_index()``,
                or a referenced File is unknown or already owned.
            BrokenParentError: The parent is not a stored directory.
        """
        if self._find(node.id) is not None:
            msg = f"Duplicate node id: {node.id!r}"
            raise ValueError(msg)
        if node.index != self.next_index():
            msg = f"Node {node.id!r} has index {node.index}, expected {self.next_index()}"
            raise ValueError(msg)
        self._check_parent(node.parent_id)
        for file_id in _file_refs(node):
            self._check_file(file_id)
        self.nodes.set((*self.nodes.get(), node))
        logger.debug("Added {} node {} at index {}", node.type.value, node.id, node.index)

    def remove(self, node_id: str) -> None:
        """Remove a node, its owned File, and close the gap in the global index.

        Raises:
            NodeNotFoundError: No node has ``node_id``.
            ValueError: The node is a directory that still has children.
        """
        found = self._get_existing(node_id)

        if isinstance(found, DirectoryNode) and self.get_child_nodes(found.id):
            msg = f"Directory {found.name!r} ({found.id}) is not empty"
            raise ValueError(msg)

        for file_id in _file_refs(found):
            self.files.remove(file_id)

        self.nodes.set(
            tuple(
                replace(n, index=n.index - 1) if n.index > found.index else n
                for n in self.nodes.get()
                if n.id != node_id
            )
        )
        logger.debug("Removed {} node {}", found.type.value, node_id)
        self._persist()

    def set_parent(self, node_id: str, parent_id: str | None) -> None:
        """Move a node under another directory (None for the root).

        Only ``parent_id`` changes; the global index stays as it was.

        Raises:
            NodeNotFoundError: The node or the new parent does not exist.
            ValueError: The new parent is not a directory, or the move
                would place a directory inside itself.
        """
        found = self._get_existing(node_id)

        if parent_id is not None:
            parent = self._get_existing(parent_id)
            if not isinstance(parent, DirectoryNode):
                msg = f"Cannot move {node_id} under {parent_id}: not a directory"
                raise ValueError(msg)
            if isinstance(found, DirectoryNode) and self._is_within(parent_id, found.id):
                msg = f"Cannot move directory {node_id} into itself"
                raise ValueError(msg)

        self._replace(replace(found, parent_id=parent_id))
        logger.debug("Moved node {} under {}", node_id, parent_id or "root")
        self._persist()

    def update(self, node_id: str, **changes: Any) -> Node:
        """Edit content fields of a node and stamp its modification time."""
        found = self._get_existing(node_id)
        forbidden = _FROZEN_FIELDS.intersection(changes)
        if forbidden:
            msg = f"Cannot edit {sorted(forbidden)!r} through update()"
            raise ValueError(msg)
        if "tags" in changes:
            changes["tags"] = _normalize_tags(changes["tags"])

        updated = replace(found, modified=self._clock(), **changes)
        self._replace(updated)
        logger.debug("Updated node {}: {}", node_id, sorted(changes))
        self._persist()
        return updated

    def reset(self, nodes: Iterable[Node]) -> None:
        self.nodes.set(tuple(nodes))

    # --- Typed constructors ---

    def add_text(
        self,
        content: str,
        *,
        tags: Iterable[str] | None = None,
        parent_id: str | None = None,
    ) -> TextNode:
        return self._create(TextNode, tags=tags, parent_id=parent_id, content=content)

    def add_image(
        self,
        file: File,
        *,
        description: str | None = None,
        tags: Iterable[str] | None = None,
        parent_id: str | None = None,
    ) -> ImageNode:
        """Register ``file`` and add an image node owning it."""
        self._check_parent(parent_id)
        self.files.add(file)
        return self._create(
            ImageNode, tags=tags, parent_id=parent_id, file_id=file.id, description=description
        )

    def add_anchor(
        self,
        content_url: str,
        content_type: str,
        *,
        title: str | None = None,
        description: str | None = None,
        content_image: File | None = None,
        tags: Iterable[str] | None = None,
        parent_id: str | None = None,
    ) -> AnchorNode:
        """Add a bookmark, optionally with a preview image File it owns."""
        self._check_parent(parent_id)
        if content_image is not None:
            self.files.add(content_image)
        now = self._clock()
        return self._create(
            AnchorNode,
            now=now,
            tags=tags,
            parent_id=parent_id,
            content_url=content_url,
            content_type=content_type,
            title=title,
            description=description,
            content_image_file_id=content_image.id if content_image else None,
            content_accessed=now,
        )

    def add_directory(self, name: str, *, parent_id: str | None = None) -> DirectoryNode:
        return self._create(DirectoryNode, tags=None, parent_id=parent_id, name=name)

    # --- Internals ---

    def _create(
        self,
        cls: type[N],
        *,
        tags: Iterable[str] | None,
        parent_id: str | None,
        now: datetime | None = None,
        **fields: Any,
    ) -> N:
        now = now or self._clock()
        node = cls(
            id=self._ids(),
            created=now,
            modified=now,
            index=self.next_index(),
            parent_id=parent_id,
            tags=_normalize_tags(tags),
            **fields,
        )
        self.add(node)
        self._persist()
        return node

    def _find(self, node_id: str) -> Node | None:
        return next((n for n in self.nodes.get() if n.id == node_id), None)

    def _get_existing(self, node_id: str) -> Node:
        found = self._find(node_id)
        if found is None:
            msg = f"Node not found: {node_id!r}"
            raise NodeNotFoundError(msg)
        return found

    def _check_parent(self, parent_id: str | None) -> None:
        if parent_id is None:
            return
        if not isinstance(self._find(parent_id), DirectoryNode):
            msg = f"Parent {parent_id!r} is not a stored directory"
            raise BrokenParentError(msg)

    def _check_file(self, file_id: str) -> None:
        if self.files.get(file_id) is None:
            msg = f"Unknown file: {file_id!r}"
            raise ValueError(msg)
        if any(file_id in _file_refs(n) for n in self.nodes.get()):
            msg = f"File {file_id!r} is already owned by another node"
            raise ValueError(msg)

    def _is_within(self, node_id: str, ancestor_id: str) -> bool:
        """True if ``node_id`` is ``ancestor_id`` or one of its descendants."""
        current: str | None = node_id
        while current is not None:
            if current == ancestor_id:
                return True
            node = self._find(current)
            current = node.parent_id if node else None
        return False

    def _replace(self, updated: Node) -> None:
        self.nodes.set(tuple(updated if n.id == updated.id else n for n in self.nodes.get()))
