"""Directory lookup and path creation."""

from loguru import logger

from notebox.core.collation import names_match
from notebox.core.store.nodes import NodeStore
from notebox.models.node import DirectoryNode


def find_directory(
    store: NodeStore,
    parent_id: str | None,
    name: str,
) -> DirectoryNode | None:
    """Return the child directory of ``parent_id`` named ``name``.

    Names are compared ignoring case and accents.
    """
    return next(
        (d for d in store.get_child_directories(parent_id) if names_match(d.name, name)),
        None,
    )


def create_directory_path(store: NodeStore, path: str) -> str | None:
    """Make sure every directory along ``path`` exists.

    Empty segments are skipped, so "a//b/" is the same as "a/b". Existing
    directories are reused, so calling this twice creates nothing new.

    Returns:
        Id of the deepest directory, or None when ``path`` has no segments.
    """
    parent_id: str | None = None
    for segment in (s for s in path.split("/") if s):
        existing = find_directory(store, parent_id, segment)
        if existing is not None:
            parent_id = existing.id
            continue
        created = store.add_directory(segment, parent_id=parent_id)
        logger.debug("Created directory {!r} under {}", segment, created.parent_id or "root")
        parent_id = created.id
    return parent_id
