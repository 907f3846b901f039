"""Domain models for the notebox library."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import ClassVar


class NodeType(str, Enum):
    """Discriminant stored in the ``type`` field of every persisted node."""

    TEXT = "text"
    IMAGE = "image"
    ANCHOR = "anchor"
    DIRECTORY = "directory"


class ReservedID(str, Enum):
    """Identifiers that never belong to a stored node."""

    TRASH = "trash"


@dataclass(frozen=True, kw_only=True)
class Node:
    """A single unit of library content.

    ``index`` is a global ordering value across every node in the library,
    not a position among siblings.
    """

    type: ClassVar[NodeType]

    id: str
    created: datetime
    modified: datetime
    index: int
    parent_id: str | None = None
    tags: tuple[str, ...] | None = None


@dataclass(frozen=True, kw_only=True)
class TextNode(Node):
    """A plain text note."""

    type: ClassVar[NodeType] = NodeType.TEXT

    content: str


@dataclass(frozen=True, kw_only=True)
class ImageNode(Node):
    """An image stored as a File blob."""

    type: ClassVar[NodeType] = NodeType.IMAGE

    file_id: str
    description: str | None = None


@dataclass(frozen=True, kw_only=True)
class AnchorNode(Node):
    """A web bookmark."""

    type: ClassVar[NodeType] = NodeType.ANCHOR

    content_url: str
    content_type: str
    content_accessed: datetime
    title: str | None = None
    description: str | None = None
    content_image_file_id: str | None = None
    content_modified: datetime | None = None


@dataclass(frozen=True, kw_only=True)
class DirectoryNode(Node):
    """A named container for other nodes."""

    type: ClassVar[NodeType] = NodeType.DIRECTORY

    name: str


@dataclass(frozen=True)
class PseudoDirectoryNode:
    """Synthetic directory standing in for the library root."""

    id: None = None
    name: str = "Library"
    type: NodeType = NodeType.DIRECTORY


NODE_CLASSES: dict[NodeType, type[Node]] = {
    NodeType.TEXT: TextNode,
    NodeType.IMAGE: ImageNode,
    NodeType.ANCHOR: AnchorNode,
    NodeType.DIRECTORY: DirectoryNode,
}


@dataclass(frozen=True)
class File:
    """Metadata for a blob held by host storage."""

    id: str
    type: str
    name: str | None = None
    url: str | None = None
    modified: datetime | None = None
    accessed: datetime | None = None


@dataclass(frozen=True)
class Tag:
    """A label attachable to nodes."""

    id: str
    name: str


@dataclass(frozen=True)
class Library:
    """The persisted aggregate."""

    nodes: tuple[Node, ...] = ()
    files: tuple[File, ...] = ()
    tags: tuple[Tag, ...] = ()
    version: int | None = None


@dataclass(frozen=True)
class DirectoryView:
    """Show the children of a directory (None for the library root)."""

    parent_id: str | None = None


@dataclass(frozen=True)
class TagView:
    """Show every node carrying a tag."""

    tag: str


@dataclass(frozen=True)
class DateView:
    """Show every node created on a given day."""

    date: date


View = DirectoryView | TagView | DateView


@dataclass(frozen=True)
class Status:
    """Transient persistence status shown to the user."""

    id: str
    message: str
    saving: bool = False
    elapsed_ms: int | None = None
