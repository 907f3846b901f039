"""Tests for domain models."""

from datetime import datetime, timezone

import pytest

from notebox.models.node import (
    NODE_CLASSES,
    AnchorNode,
    DirectoryNode,
    NodeType,
    ReservedID,
    Tag,
    TextNode,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_node_is_frozen() -> None:
    node = TextNode(id="a", created=T0, modified=T0, index=0, content="hi")
    with pytest.raises(AttributeError):
        node.content = "changed"  # type: ignore[misc]


def test_variants_carry_their_discriminant() -> None:
    assert TextNode.type is NodeType.TEXT
    assert DirectoryNode.type is NodeType.DIRECTORY
    assert {cls.type for cls in NODE_CLASSES.values()} == set(NodeType)


def test_optional_fields_default_to_none() -> None:
    anchor = AnchorNode(
        id="a",
        created=T0,
        modified=T0,
        index=0,
        content_url="https://example.com",
        content_type="text/html",
        content_accessed=T0,
    )
    assert anchor.parent_id is None
    assert anchor.tags is None
    assert anchor.content_image_file_id is None


def test_reserved_trash_id_compares_as_string() -> None:
    assert ReservedID.TRASH == "trash"


def test_tag_equality_is_by_value() -> None:
    assert Tag(id="1", name="x") == Tag(id="1", name="x")


def test_anchor_requires_access_time() -> None:
    with pytest.raises(TypeError):
        AnchorNode(  # type: ignore[call-arg]
            id="a",
            created=T0,
            modified=T0,
            index=0,
            content_url="https://example.com",
            content_type="text/html",
        )
