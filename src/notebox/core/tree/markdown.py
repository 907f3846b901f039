"""Render directory trees as markdown."""

import io
from collections.abc import Iterator

from notebox.core.store.nodes import NodeStore
from notebox.core.tree.builder import DirectoryTree
from notebox.models.node import DirectoryNode


def render_tree_as_markdown(
    tree: DirectoryTree,
    *,
    store: NodeStore | None = None,
    max_depth: int | None = None,
) -> str:
    """Render a directory tree as an indented markdown bullet list.

    Args:
        tree: Tree returned by ``build_tree``.
        store: When given, each line also shows how many non-directory
            items the directory holds.
        max_depth: Max levels below the tree root to include (None = unlimited).

    Returns:
        Markdown string with one bullet per directory.
    """
    out = io.StringIO()
    start_depth = tree.depth

    for subtree in _walk_limited(tree, start_depth, max_depth):
        relative_depth = subtree.depth - start_depth
        indent = "    " * relative_depth
        line = f"{indent}- {subtree.node.name}"

        if store is not None:
            items = sum(
                1
                for n in store.get_child_nodes(subtree.node.id)
                if not isinstance(n, DirectoryNode)
            )
            if items:
                noun = "item" if items == 1 else "items"
                line += f" ({items} {noun})"
        out.write(line + "\n")

        # Truncation indicator when subdirectories are cut off by max_depth
        if max_depth is not None and relative_depth == max_depth and subtree.children:
            count = len(subtree.children)
            noun = "directory" if count == 1 else "directories"
            out.write(f"{indent}    - ... ({count} more {noun})\n")

    return out.getvalue()


def _walk_limited(
    tree: DirectoryTree, start_depth: int, max_depth: int | None
) -> Iterator[DirectoryTree]:
    yield tree
    if max_depth is not None and tree.depth - start_depth >= max_depth:
        return
    for child in tree.children:
        yield from _walk_limited(child, start_depth, max_depth)
