"""CLI for notebox (browse and edit a library from the terminal)."""

import asyncio
import json
import mimetypes
from collections.abc import Callable
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from loguru import logger

from notebox.config import resolve_data_directory
from notebox.core.tree.markdown import render_tree_as_markdown
from notebox.errors import LibraryError
from notebox.ids import new_id
from notebox.logging_config import configure_logging
from notebox.model import LibraryModel
from notebox.models.node import DirectoryNode, DirectoryView, File, ReservedID, TagView
from notebox.storage import FileSystemStorage
from notebox.view import searchable_text

T = TypeVar("T")

app = typer.Typer(help="notebox: browse and edit your notes, images and bookmarks.")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Library data directory"),
]
TagOption = Annotated[
    list[str] | None,
    typer.Option("--tag", "-t", help="Tag name (repeatable, created if missing)"),
]
DirOption = Annotated[
    str | None,
    typer.Option("--dir", help="Directory path, created if missing"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _run(data_dir: Path | None, action: Callable[[LibraryModel, FileSystemStorage], T]) -> T:
    """Load the library, apply ``action``, and wait for the resulting saves."""
    storage = FileSystemStorage(data_dir or resolve_data_directory())

    async def runner() -> T:
        model = LibraryModel(storage)
        try:
            await model.load()
            result = action(model, storage)
            await model.flush()
            return result
        finally:
            model.close()

    try:
        return asyncio.run(runner())
    except (LibraryError, ValueError) as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e


def _lookup_path(model: LibraryModel, path: str) -> str | None:
    """Resolve an existing directory path without creating anything."""
    parent_id: str | None = None
    for segment in (s for s in path.split("/") if s):
        found = model.find_directory(parent_id, segment)
        if found is None:
            msg = f"Directory not found: {path!r}"
            raise ValueError(msg)
        parent_id = found.id
    return parent_id


def _target_directory(model: LibraryModel, directory: str | None) -> str | None:
    return model.create_directory_path(directory) if directory else None


@app.command()
def tree(
    under: Annotated[str, typer.Argument(help="Directory path to start from")] = "/",
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Levels below the start directory to show"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Show the directory tree."""

    def action(model: LibraryModel, _storage: FileSystemStorage) -> str:
        built = model.build_tree(_lookup_path(model, under))
        return render_tree_as_markdown(built, store=model.nodes, max_depth=max_depth)

    typer.echo(_run(data_dir, action), nl=False)


@app.command(name="ls")
def list_cmd(
    path: Annotated[str, typer.Argument(help="Directory path")] = "/",
    tag: Annotated[str | None, typer.Option("--tag", "-t", help="List a tag instead")] = None,
    search: Annotated[str | None, typer.Option("--search", "-s", help="Filter text")] = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    data_dir: DataDirOption = None,
) -> None:
    """List the items of a directory or a tag."""

    def action(model: LibraryModel, _storage: FileSystemStorage) -> list[dict[str, str]]:
        if tag is not None:
            found = model.tags.find_tag(tag)
            if found is None:
                msg = f"Tag not found: {tag!r}"
                raise ValueError(msg)
            model.change_view(TagView(tag=found.id))
        else:
            model.change_view(DirectoryView(parent_id=_lookup_path(model, path)))
        if search:
            model.view_state.set_search_text(search)
        return [
            {"id": n.id, "type": n.type.value, "text": searchable_text(n)}
            for n in model.view_state.visible_nodes(model.nodes)
        ]

    rows = _run(data_dir, action)
    if output_json:
        typer.echo(json.dumps(rows, indent=2, ensure_ascii=False))
        return
    for row in rows:
        suffix = "/" if row["type"] == "directory" else ""
        typer.echo(f"  {row['text'][:80]}{suffix}  [{row['type']} id={row['id']}]")


@app.command()
def mkdir(
    path: Annotated[str, typer.Argument(help="Directory path, e.g. projects/2024")],
    data_dir: DataDirOption = None,
) -> None:
    """Create a directory path (existing directories are reused)."""
    directory_id = _run(data_dir, lambda model, _storage: model.create_directory_path(path))
    if directory_id is None:
        logger.error("Empty path: {!r}", path)
        raise typer.Exit(1)
    typer.echo(directory_id)


@app.command(name="add-text")
def add_text(
    text: Annotated[str, typer.Argument(help="Note text")],
    directory: DirOption = None,
    tag: TagOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """Add a text note."""

    def action(model: LibraryModel, _storage: FileSystemStorage) -> str:
        node = model.nodes.add_text(
            text,
            tags=model.find_or_create_tags(tag or []),
            parent_id=_target_directory(model, directory),
        )
        return node.id

    typer.echo(_run(data_dir, action))


@app.command(name="add-link")
def add_link(
    url: Annotated[str, typer.Argument(help="Bookmark URL")],
    title: Annotated[str | None, typer.Option("--title", help="Bookmark title")] = None,
    content_type: Annotated[
        str, typer.Option("--content-type", help="MIME type of the bookmarked content")
    ] = "text/html",
    directory: DirOption = None,
    tag: TagOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """Add a web bookmark."""

    def action(model: LibraryModel, _storage: FileSystemStorage) -> str:
        node = model.nodes.add_anchor(
            url,
            content_type,
            title=title,
            tags=model.find_or_create_tags(tag or []),
            parent_id=_target_directory(model, directory),
        )
        return node.id

    typer.echo(_run(data_dir, action))


@app.command(name="add-image")
def add_image(
    image: Annotated[Path, typer.Argument(help="Image file to copy into the library")],
    description: Annotated[
        str | None, typer.Option("--description", help="Image description")
    ] = None,
    directory: DirOption = None,
    tag: TagOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """Copy an image into the library and add an image node for it."""
    if not image.is_file():
        logger.error("Image not found: {}", image)
        raise typer.Exit(1)

    def action(model: LibraryModel, storage: FileSystemStorage) -> str:
        parent_id = _target_directory(model, directory)
        file_id = new_id()
        storage.store_blob(file_id, image.read_bytes())
        mime, _encoding = mimetypes.guess_type(image.name)
        file = File(
            id=file_id,
            type=mime or "application/octet-stream",
            name=image.name,
            accessed=storage.now(),
        )
        node = model.nodes.add_image(
            file,
            description=description,
            tags=model.find_or_create_tags(tag or []),
            parent_id=parent_id,
        )
        return node.id

    typer.echo(_run(data_dir, action))


@app.command(name="mv")
def move(
    node_id: Annotated[str, typer.Argument(help="Id of the item to move")],
    path: Annotated[str, typer.Argument(help="Destination directory path ('/' for root)")],
    data_dir: DataDirOption = None,
) -> None:
    """Move an item to another directory (created if missing)."""

    def action(model: LibraryModel, _storage: FileSystemStorage) -> str:
        parent_id = model.create_directory_path(path)
        model.nodes.set_parent(node_id, parent_id)
        return model.resolve_path(parent_id)

    typer.echo(f"Moved {node_id} to {_run(data_dir, action)}")


@app.command(name="rm")
def remove(
    node_id: Annotated[str, typer.Argument(help="Id of the item to remove")],
    data_dir: DataDirOption = None,
) -> None:
    """Remove an item (and the file it owns)."""
    _run(data_dir, lambda model, _storage: model.nodes.remove(node_id))
    typer.echo(f"Removed {node_id}")


@app.command()
def tags(data_dir: DataDirOption = None) -> None:
    """List all tags with the number of items carrying them."""

    def action(model: LibraryModel, _storage: FileSystemStorage) -> list[tuple[str, int]]:
        nodes = model.nodes.nodes.get()
        return [
            (t.name, sum(1 for n in nodes if n.tags and t.id in n.tags))
            for t in model.tags.tags.get()
        ]

    rows = _run(data_dir, action)
    typer.echo(f"{len(rows)} tags:\n")
    for name, count in rows:
        typer.echo(f"  {name} - {count} items")


@app.command()
def path(
    directory_id: Annotated[str, typer.Argument(help="Directory id")],
    data_dir: DataDirOption = None,
) -> None:
    """Print the absolute path of a directory."""

    def action(model: LibraryModel, _storage: FileSystemStorage) -> str:
        node = model.nodes.get_node(directory_id)
        if node is None and directory_id != ReservedID.TRASH:
            msg = f"Node not found: {directory_id!r}"
            raise ValueError(msg)
        if node is not None and not isinstance(node, DirectoryNode):
            msg = f"Not a directory: {directory_id!r}"
            raise ValueError(msg)
        return model.resolve_path(directory_id)

    typer.echo(_run(data_dir, action))
