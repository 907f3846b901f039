"""Encode and decode the library document."""

import json
from collections.abc import Iterable
from dataclasses import fields
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from notebox.core.persistence.schema import (
    SCHEMA_VERSION,
    TIMESTAMP_FIELDS,
    LibraryRecord,
    check_integrity,
)
from notebox.errors import LibraryValidationError
from notebox.models.node import NODE_CLASSES, File, Library, Node, NodeType, Tag

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Python attribute name -> document key, for names that differ.
_ALIASES = {
    "parent_id": "parentID",
    "file_id": "fileID",
    "content_url": "contentURL",
    "content_type": "contentType",
    "content_image_file_id": "contentImageFileID",
    "content_modified": "contentModified",
    "content_accessed": "contentAccessed",
}


def to_nanoseconds(value: datetime) -> int:
    """Nanoseconds since the Unix epoch. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000


def from_nanoseconds(value: int) -> datetime:
    # datetime only carries microseconds; anything finer is dropped.
    # Raises OverflowError outside datetime's year range.
    return _EPOCH + timedelta(microseconds=value // 1_000)


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_nanoseconds(value)
    if isinstance(value, tuple):
        return list(value)
    return value


def _encode_record(obj: Any, **extra: Any) -> dict[str, Any]:
    out: dict[str, Any] = dict(extra)
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        out[_ALIASES.get(f.name, f.name)] = _encode_value(value)
    return out


def encode_library(nodes: Iterable[Node], files: Iterable[File], tags: Iterable[Tag]) -> str:
    """Serialize a library snapshot, stamping the current schema version."""
    data = {
        "nodes": [_encode_record(n, type=n.type.value) for n in nodes],
        "files": [_encode_record(f) for f in files],
        "tags": [_encode_record(t) for t in tags],
        "version": SCHEMA_VERSION,
    }
    return json.dumps(data, ensure_ascii=False)


def _revive_timestamps(obj: dict[str, Any]) -> dict[str, Any]:
    for key in TIMESTAMP_FIELDS.intersection(obj):
        value = obj[key]
        if isinstance(value, int) and not isinstance(value, bool):
            obj[key] = from_nanoseconds(value)
    return obj


def decode_library(raw: str) -> Library:
    """Parse and validate a library document.

    Raises:
        LibraryValidationError: The document is not valid JSON, does not
            match the schema, or breaks a cross-record invariant.
    """
    try:
        data = json.loads(raw, object_hook=_revive_timestamps)
    except json.JSONDecodeError as e:
        msg = f"Library document is not valid JSON: {e}"
        raise LibraryValidationError(msg) from e
    except OverflowError as e:
        msg = f"Library document has a timestamp out of range: {e}"
        raise LibraryValidationError(msg) from e

    if not isinstance(data, dict):
        msg = f"Library document must be an object, got {type(data).__name__}"
        raise LibraryValidationError(msg)

    try:
        record = LibraryRecord.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid library document: {e}"
        raise LibraryValidationError(msg) from e

    check_integrity(record)

    nodes: list[Node] = []
    for r in record.nodes:
        values = r.model_dump(exclude={"type"})
        if values["tags"] is not None:
            values["tags"] = tuple(values["tags"])
        nodes.append(NODE_CLASSES[NodeType(r.type)](**values))

    return Library(
        nodes=tuple(nodes),
        files=tuple(File(**f.model_dump()) for f in record.files),
        tags=tuple(Tag(**t.model_dump()) for t in record.tags),
        version=record.version,
    )
