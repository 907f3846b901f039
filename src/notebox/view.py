"""Current view selection, search text and display flags."""

from notebox.core.collation import contains_folded
from notebox.core.store.nodes import NodeStore
from notebox.models.node import (
    AnchorNode,
    DateView,
    DirectoryNode,
    DirectoryView,
    ImageNode,
    Node,
    ReservedID,
    TagView,
    TextNode,
    View,
)
from notebox.observable import Observable


def searchable_text(node: Node) -> str:
    """Text of a node that search matches against."""
    if isinstance(node, TextNode):
        return node.content
    if isinstance(node, ImageNode):
        return node.description or ""
    if isinstance(node, AnchorNode):
        return " ".join(p for p in (node.title, node.description, node.content_url) if p)
    if isinstance(node, DirectoryNode):
        return node.name
    msg = f"Unhandled node type: {type(node).__name__}"
    raise TypeError(msg)


class ViewState:
    """What the UI is currently showing."""

    def __init__(self) -> None:
        self.view: Observable[View | None] = Observable(None)
        self.search_text: Observable[str] = Observable("")
        self.show_details: Observable[bool] = Observable(False)

    def change_view(self, view: View | None) -> None:
        self.view.set(view)

    def set_search_text(self, text: str) -> None:
        self.search_text.set(text)

    def toggle_details(self) -> None:
        self.show_details.set(not self.show_details.get())

    def visible_nodes(self, store: NodeStore) -> tuple[Node, ...]:
        """Nodes selected by the current view and search text, by index.

        No view selects every node. The Trash directory view is always empty.
        """
        view = self.view.get()
        all_nodes = sorted(store.nodes.get(), key=lambda n: n.index)

        candidates: list[Node]
        if view is None:
            candidates = all_nodes
        elif isinstance(view, DirectoryView):
            if view.parent_id == ReservedID.TRASH:
                candidates = []
            else:
                candidates = list(store.get_child_nodes(view.parent_id))
        elif isinstance(view, TagView):
            candidates = [n for n in all_nodes if n.tags and view.tag in n.tags]
        elif isinstance(view, DateView):
            candidates = [n for n in all_nodes if n.created.date() == view.date]
        else:
            msg = f"Unhandled view type: {type(view).__name__}"
            raise TypeError(msg)

        text = self.search_text.get()
        if text:
            candidates = [n for n in candidates if contains_folded(searchable_text(n), text)]
        return tuple(candidates)
