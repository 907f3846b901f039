"""Structure of the persisted library document and its integrity checks."""

from collections import Counter
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notebox.errors import LibraryValidationError

SCHEMA_VERSION = 1

# Keys whose integer values are nanosecond timestamps.
TIMESTAMP_FIELDS = frozenset(
    {"created", "modified", "accessed", "contentModified", "contentAccessed"}
)


class _Record(BaseModel):
    # Strict: timestamps must already be revived to datetime, ints must not be bools.
    model_config = ConfigDict(strict=True, populate_by_name=True)


class _NodeRecord(_Record):
    id: str
    created: datetime
    modified: datetime
    index: int = Field(ge=0)
    parent_id: str | None = Field(default=None, alias="parentID")
    tags: list[str] | None = None


class TextRecord(_NodeRecord):
    type: Literal["text"]
    content: str


class ImageRecord(_NodeRecord):
    type: Literal["image"]
    file_id: str = Field(alias="fileID")
    description: str | None = None


class AnchorRecord(_NodeRecord):
    type: Literal["anchor"]
    content_url: str = Field(alias="contentURL")
    content_type: str = Field(alias="contentType")
    title: str | None = None
    description: str | None = None
    content_image_file_id: str | None = Field(default=None, alias="contentImageFileID")
    content_modified: datetime | None = Field(default=None, alias="contentModified")
    content_accessed: datetime = Field(alias="contentAccessed")


class DirectoryRecord(_NodeRecord):
    type: Literal["directory"]
    name: str


NodeRecord = Annotated[
    TextRecord | ImageRecord | AnchorRecord | DirectoryRecord,
    Field(discriminator="type"),
]


class FileRecord(_Record):
    id: str
    type: str
    name: str | None = None
    url: str | None = None
    modified: datetime | None = None
    accessed: datetime | None = None


class TagRecord(_Record):
    id: str
    name: str


class LibraryRecord(_Record):
    """Top-level document. Missing or null arrays default to empty."""

    nodes: list[NodeRecord] = Field(default_factory=list)
    files: list[FileRecord] = Field(default_factory=list)
    tags: list[TagRecord] = Field(default_factory=list)
    version: int | None = None

    @field_validator("nodes", "files", "tags", mode="before")
    @classmethod
    def null_as_empty(cls, value: object) -> object:
        return [] if value is None else value


def _duplicates(ids: list[str]) -> list[str]:
    return sorted(i for i, count in Counter(ids).items() if count > 1)


def check_integrity(record: LibraryRecord) -> None:
    """Check cross-record invariants pydantic cannot express.

    Raises:
        LibraryValidationError: On the first violated invariant.
    """
    if record.version is not None and record.version > SCHEMA_VERSION:
        msg = f"Library version {record.version} is newer than supported ({SCHEMA_VERSION})"
        raise LibraryValidationError(msg)

    for kind, ids in (
        ("node", [n.id for n in record.nodes]),
        ("file", [f.id for f in record.files]),
        ("tag", [t.id for t in record.tags]),
    ):
        dupes = _duplicates(ids)
        if dupes:
            msg = f"Duplicate {kind} ids: {dupes!r}"
            raise LibraryValidationError(msg)

    indices = sorted(n.index for n in record.nodes)
    if indices != list(range(len(record.nodes))):
        msg = "Node indices must be a permutation of 0..N-1"
        raise LibraryValidationError(msg)

    directory_ids = {n.id for n in record.nodes if isinstance(n, DirectoryRecord)}
    file_ids = {f.id for f in record.files}
    owners: Counter[str] = Counter()

    for node in record.nodes:
        if node.parent_id is not None and node.parent_id not in directory_ids:
            msg = f"Node {node.id!r} has unknown parent {node.parent_id!r}"
            raise LibraryValidationError(msg)

        owned: str | None = None
        if isinstance(node, ImageRecord):
            owned = node.file_id
        elif isinstance(node, AnchorRecord):
            owned = node.content_image_file_id
        if owned is None:
            continue
        if owned not in file_ids:
            msg = f"Node {node.id!r} references unknown file {owned!r}"
            raise LibraryValidationError(msg)
        owners[owned] += 1

    shared = sorted(f for f, count in owners.items() if count > 1)
    if shared:
        msg = f"Files owned by more than one node: {shared!r}"
        raise LibraryValidationError(msg)
