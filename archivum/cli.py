"""
CLI interface for archivum.

Usage:
    archivum add-tag work/projects
    archivum add-file notes.txt --size 120
    archivum tag 1 2
    archivum tagged 2
"""

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from typing_extensions import Annotated

from .api import Archive
from .config import get_config_dir
from .errors import ArchivumError, log_exception
from .logging_config import configure_quiet_mode, enable_debug_mode
from .serialization import loads
from .types import BookmarkData, FileData, Node, Tag, utc_now


# Configure quiet mode by default
# Set ARCHIVUM_VERBOSE=1 to enable debug mode via environment
if os.environ.get("ARCHIVUM_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"archivum {version('archivum')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_store_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _store_callback(value: Optional[Path]):
    global _store_override
    _store_override = value


def _get_store_override() -> Optional[Path]:
    return _store_override


app = typer.Typer(
    name="archivum",
    help="Tagged repository of files and bookmarks.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


# -----------------------------------------------------------------------------
# Output Formatting
# -----------------------------------------------------------------------------

PATH_SEPARATOR = "/"


def _parse_path(text: str) -> list[str]:
    """Split a command-line tag path ("work/projects") into segments."""
    return text.split(PATH_SEPARATOR)


def _format_path(path) -> str:
    return PATH_SEPARATOR.join(path)


def _format_tag(tag: Tag) -> str:
    return f"{tag.id:>4}  {_format_path(tag.path)}  [{tag.color}]"


def _describe_data(node: Node) -> str:
    data = node.data
    if isinstance(data, FileData):
        return f"file  {data.filename} ({data.size} bytes)"
    if isinstance(data, BookmarkData):
        if data.title:
            return f"bookmark  {data.title} <{data.url}>"
        return f"bookmark  {data.url}"
    raise TypeError(f"Unknown node payload type: {type(data).__name__}")


def _format_node(node: Node) -> str:
    line = f"{node.id:>4}  {_describe_data(node)}"
    if node.tags:
        line += "  " + " ".join(f"#{_format_path(t.path)}" for t in node.tags)
    return f"{line}  ({node.date_updated})"


def _echo_tags(tags: list[Tag]) -> None:
    if _get_json_output():
        typer.echo(json.dumps([t.to_dict() for t in tags], indent=2))
        return
    for tag in tags:
        typer.echo(_format_tag(tag))


def _echo_nodes(nodes: list[Node]) -> None:
    if _get_json_output():
        typer.echo(json.dumps([n.to_dict() for n in nodes], indent=2))
        return
    for node in nodes:
        typer.echo(_format_node(node))


def _echo_result(payload: dict, text: str) -> None:
    if _get_json_output():
        typer.echo(json.dumps(payload, indent=2))
    else:
        typer.echo(text)


@contextmanager
def _open_archive(command: str, *, write: bool = False) -> Iterator[Archive]:
    """
    Open the archive for one command.

    Saves afterwards if ``write`` is set and the command succeeded.
    Repository errors become a one-line message and exit code 1; the
    full traceback goes to the error log.
    """
    store_path = get_config_dir(_get_store_override())
    try:
        ar = Archive.open(store_path)
    except (ArchivumError, OSError, ValueError) as e:
        log_exception(e, command, store_path)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    try:
        yield ar
        if write:
            ar.save()
    except ArchivumError as e:
        log_exception(e, command, store_path)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        ar.close()


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    store: Annotated[Optional[Path], typer.Option(
        "--store", "-s",
        envvar="ARCHIVUM_STORE_PATH",
        help="Path to the store directory (default: ~/.archivum/)",
        callback=_store_callback,
        is_eager=True,
    )] = None,
):
    """Tagged repository of files and bookmarks."""


# -----------------------------------------------------------------------------
# Commands: repository
# -----------------------------------------------------------------------------

@app.command()
def info():
    """Show repository counts and the next ids to be issued."""
    with _open_archive("info") as ar:
        stats = ar.stats()
        stats["store"] = str(ar.config.path)
        stats["document"] = str(ar.config.document_path)
        if _get_json_output():
            typer.echo(json.dumps(stats, indent=2))
            return
        for key, value in stats.items():
            typer.echo(f"{key}: {value}")


@app.command("export")
def export_document():
    """Write the repository document to stdout."""
    with _open_archive("export") as ar:
        typer.echo(ar.to_json(indent=2))


@app.command("import")
def import_document(
    file: Annotated[Path, typer.Argument(help="Repository document (JSON)")],
):
    """Replace the repository with a document file."""
    with _open_archive("import", write=True) as ar:
        try:
            text = file.read_bytes()
        except OSError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
        ar.replace_repository(loads(text))
        stats = ar.stats()
        _echo_result(stats, f"Imported {stats['tags']} tags, {stats['nodes']} nodes")


# -----------------------------------------------------------------------------
# Commands: tags
# -----------------------------------------------------------------------------

@app.command("tags")
def list_tags():
    """List all tags."""
    with _open_archive("tags") as ar:
        _echo_tags(ar.get_all_tags())


@app.command("add-tag")
def add_tag(
    path: Annotated[str, typer.Argument(help="Tag path, segments separated by '/'")],
    id: Annotated[Optional[int], typer.Option(
        "--id", help="Tag id (default: next free id); an existing id is renamed"
    )] = None,
):
    """Create a tag, or move an existing tag to a new path with --id."""
    with _open_archive("add-tag", write=True) as ar:
        segments = _parse_path(path)
        if id is None:
            tag = ar.ensure_tag_path(segments)
        else:
            tag = ar.upsert_tag(id, segments)
        _echo_result(tag.to_dict(), _format_tag(tag))


@app.command("rm-tag")
def remove_tag(
    id: Annotated[int, typer.Argument(help="Tag id")],
):
    """Delete a tag and detach it from every node."""
    with _open_archive("rm-tag", write=True) as ar:
        deleted = ar.delete_tag(id)
        _echo_result({"id": id, "deleted": deleted},
                     f"Deleted tag {id}" if deleted else f"No tag {id}")


@app.command()
def children(
    id: Annotated[int, typer.Argument(help="Parent tag id")],
    all_levels: Annotated[bool, typer.Option(
        "--all", "-a", help="Include every descendant, not just direct children"
    )] = False,
):
    """List the tags below a tag."""
    with _open_archive("children") as ar:
        if all_levels:
            _echo_tags(ar.get_descendant_tags(id))
        else:
            _echo_tags(ar.get_child_tags(id))


# -----------------------------------------------------------------------------
# Commands: nodes
# -----------------------------------------------------------------------------

@app.command("nodes")
def list_nodes():
    """List all nodes with their tags."""
    with _open_archive("nodes") as ar:
        _echo_nodes(ar.get_all_nodes())


def _add_node(command: str, data) -> None:
    with _open_archive(command, write=True) as ar:
        now = utc_now()
        node = ar.upsert_node(ar.get_next_node_id(), data, now, now)
        _echo_result(node.to_dict(), _format_node(node))


@app.command("add-file")
def add_file(
    filename: Annotated[str, typer.Argument(help="File name")],
    size: Annotated[int, typer.Option("--size", min=0, help="Size in bytes")] = 0,
):
    """Add a file node."""
    _add_node("add-file", FileData(filename=filename, size=size))


@app.command("add-bookmark")
def add_bookmark(
    url: Annotated[str, typer.Argument(help="Bookmark URL")],
    title: Annotated[Optional[str], typer.Option("--title", "-t", help="Bookmark title")] = None,
):
    """Add a bookmark node."""
    _add_node("add-bookmark", BookmarkData(url=url, title=title))


@app.command()
def show(
    id: Annotated[int, typer.Argument(help="Node id")],
):
    """Show one node."""
    with _open_archive("show") as ar:
        node = ar.get_node(id)
        if node is None:
            typer.echo(f"Not found: node {id}", err=True)
            raise typer.Exit(1)
        _echo_nodes([node])


@app.command("rm")
def remove_node(
    id: Annotated[int, typer.Argument(help="Node id")],
):
    """Delete a node."""
    with _open_archive("rm", write=True) as ar:
        deleted = ar.delete_node(id)
        _echo_result({"id": id, "deleted": deleted},
                     f"Deleted node {id}" if deleted else f"No node {id}")


# -----------------------------------------------------------------------------
# Commands: tagging
# -----------------------------------------------------------------------------

@app.command("tag")
def tag_node(
    node_id: Annotated[int, typer.Argument(help="Node id")],
    tag_id: Annotated[int, typer.Argument(help="Tag id")],
):
    """Attach a tag to a node."""
    with _open_archive("tag", write=True) as ar:
        ar.tag_node(node_id, tag_id)
        _echo_nodes([ar.get_node(node_id)])


@app.command("untag")
def untag_node(
    node_id: Annotated[int, typer.Argument(help="Node id")],
    tag_id: Annotated[int, typer.Argument(help="Tag id")],
):
    """Detach a tag from a node."""
    with _open_archive("untag", write=True) as ar:
        removed = ar.untag_node(node_id, tag_id)
        _echo_result({"node_id": node_id, "tag_id": tag_id, "removed": removed},
                     f"Untagged node {node_id} from tag {tag_id}" if removed
                     else f"Node {node_id} was not tagged with {tag_id}")


@app.command()
def tagged(
    tag_id: Annotated[int, typer.Argument(help="Tag id")],
):
    """List the nodes carrying a tag."""
    with _open_archive("tagged") as ar:
        _echo_nodes(ar.get_nodes_with_tag(tag_id))


def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)
    except Exception as e:
        # Log full traceback to file, show clean message to user
        log_path = log_exception(e, context="archivum CLI", store_path=_get_store_override())
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
