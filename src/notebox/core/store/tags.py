"""Tag catalog with locale-insensitive lookup."""

from collections.abc import Callable, Iterable

from loguru import logger

from notebox.core.collation import names_match
from notebox.ids import new_id
from notebox.models.node import Tag
from notebox.observable import Observable
from notebox.protocols import IdFactory


class TagStore:
    """Copy-on-write collection of tags.

    ``create`` never merges: callers look a name up with ``find_tag`` first
    when they want to reuse an existing tag.
    """

    def __init__(
        self,
        *,
        ids: IdFactory = new_id,
        persist: Callable[[], None] | None = None,
    ) -> None:
        self.tags: Observable[tuple[Tag, ...]] = Observable(())
        self._ids = ids
        self._persist = persist or (lambda: None)

    def create(self, name: str) -> str:
        """Append a new tag and return its id."""
        tag = Tag(id=self._ids(), name=name)
        self.tags.set((*self.tags.get(), tag))
        logger.debug("Created tag {!r} ({})", name, tag.id)
        self._persist()
        return tag.id

    def find_tag(self, name: str) -> Tag | None:
        """Return the first tag whose name matches ignoring case and accents."""
        return next((t for t in self.tags.get() if names_match(t.name, name)), None)

    def get(self, tag_id: str) -> Tag | None:
        return next((t for t in self.tags.get() if t.id == tag_id), None)

    def reset(self, tags: Iterable[Tag]) -> None:
        self.tags.set(tuple(tags))
