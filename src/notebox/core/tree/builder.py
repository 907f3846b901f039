"""Build the nested directory tree shown in navigation UIs."""

from dataclasses import dataclass

from notebox.core.store.nodes import NodeStore
from notebox.errors import NodeNotFoundError
from notebox.models.node import DirectoryNode, PseudoDirectoryNode


@dataclass(frozen=True)
class DirectoryTree:
    """A directory, its depth below the starting point, and its subdirectories."""

    node: DirectoryNode | PseudoDirectoryNode
    depth: int
    children: tuple["DirectoryTree", ...] = ()


def build_tree(store: NodeStore, root_id: str | None, depth: int = 0) -> DirectoryTree:
    """Return the directory at ``root_id`` with all directories below it.

    Non-directory children are left out. The parent chain is assumed to be
    acyclic; a cycle recurses without bound.
    """
    node = store.get_node(root_id)
    if not isinstance(node, DirectoryNode | PseudoDirectoryNode):
        msg = f"Directory not found: {root_id!r}"
        raise NodeNotFoundError(msg)

    children = tuple(
        build_tree(store, child.id, depth + 1) for child in store.get_child_directories(root_id)
    )
    return DirectoryTree(node=node, depth=depth, children=children)
