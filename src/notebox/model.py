"""The library model: stores, persistence and view state wired together."""

from collections.abc import Iterable

from notebox.config import STATUS_CLEAR_DELAY
from notebox.core.persistence.coordinator import PersistenceCoordinator
from notebox.core.store.files import FileStore
from notebox.core.store.nodes import NodeStore
from notebox.core.store.tags import TagStore
from notebox.core.tree.builder import DirectoryTree, build_tree
from notebox.core.tree.navigation import create_directory_path, find_directory
from notebox.ids import new_id
from notebox.models.node import DirectoryNode, Library, Tag, View
from notebox.protocols import Clock, HostStorageProtocol, IdFactory
from notebox.view import ViewState


class LibraryModel:
    """Authoritative in-memory model of one library.

    Mutations go straight to the stores (``model.nodes``, ``model.files``,
    ``model.tags``), each of which requests a save through the coordinator.
    Observers subscribe to ``model.nodes.nodes``, ``model.status`` and the
    ``model.view_state`` observables.

    Args:
        storage: Host storage bridge.
        ids: Id source for nodes, tags and statuses (default: uuid4).
        clock: Time source (default: ``storage.now``).
        clear_delay: Seconds before a "Saved" status is cleared.
    """

    def __init__(
        self,
        storage: HostStorageProtocol,
        *,
        ids: IdFactory = new_id,
        clock: Clock | None = None,
        clear_delay: float = STATUS_CLEAR_DELAY,
    ) -> None:
        self.storage = storage
        self.files = FileStore(storage, persist=self._request_save)
        self.tags = TagStore(ids=ids, persist=self._request_save)
        self.nodes = NodeStore(
            self.files,
            clock=clock or storage.now,
            ids=ids,
            persist=self._request_save,
        )
        self.coordinator = PersistenceCoordinator(
            storage, self.nodes, self.files, self.tags, ids=ids, clear_delay=clear_delay
        )
        self.view_state = ViewState()
        self.status = self.coordinator.status
        self.saving = self.coordinator.saving

    # --- Directories ---

    def find_directory(self, parent_id: str | None, name: str) -> DirectoryNode | None:
        return find_directory(self.nodes, parent_id, name)

    def create_directory_path(self, path: str) -> str | None:
        return create_directory_path(self.nodes, path)

    def resolve_path(self, directory_id: str | None) -> str:
        return self.nodes.resolve_path(directory_id)

    def build_tree(self, root_id: str | None = None) -> DirectoryTree:
        return build_tree(self.nodes, root_id)

    # --- Tags ---

    def find_or_create_tags(self, names: Iterable[str]) -> list[str]:
        """Return tag ids for ``names``, creating tags that do not exist yet."""
        ids: list[str] = []
        for name in names:
            found: Tag | None = self.tags.find_tag(name)
            ids.append(found.id if found else self.tags.create(name))
        return ids

    # --- Views ---

    def change_view(self, view: View | None) -> None:
        self.view_state.change_view(view)

    # --- Persistence ---

    async def load(self) -> Library:
        return await self.coordinator.load()

    async def save(self) -> None:
        await self.coordinator.save()

    async def flush(self) -> None:
        await self.coordinator.flush()

    def close(self) -> None:
        self.coordinator.close()

    def _request_save(self) -> None:
        self.coordinator.request_save()
