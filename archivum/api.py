"""
Caller-facing API for an archivum repository.

Archive wraps the core Repository with what a host application needs:
- display colors for tags (tracked in memory, never persisted)
- materialized Tag / Node values
- loading and saving the repository document in a store directory

The core Repository stays free of I/O and presentation concerns.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional, Sequence

from .config import StoreConfig, get_config_dir, load_or_create_config
from .errors import NotFound
from .repository import Repository
from .serialization import dumps, loads, restore, save
from .types import (
    DEFAULT_TAG_COLOR,
    TAG_COLORS,
    Node,
    Tag,
    TagColor,
    TagRecord,
    is_color,
    validate_path,
)

logger = logging.getLogger(__name__)


def _validate_color(color: Any) -> TagColor:
    if not is_color(color):
        raise ValueError(f"Unknown tag color {color!r} (expected one of {', '.join(TAG_COLORS)})")
    return color


class Archive:
    """
    Tagged content repository with display colors and file persistence.

    Example:
        with Archive.open("~/notes") as ar:
            tag = ar.ensure_tag_path(["work", "projects"])
            node = ar.upsert_node(ar.get_next_node_id(),
                                  BookmarkData("https://example.com"),
                                  utc_now(), utc_now())
            ar.tag_node(node.id, tag.id)
            ar.save()
    """

    def __init__(
        self,
        repository: Optional[Repository] = None,
        *,
        default_color: TagColor = DEFAULT_TAG_COLOR,
        config: Optional[StoreConfig] = None,
    ) -> None:
        """
        Args:
            repository: Core repository to wrap (a new empty one if None)
            default_color: Color for tags without a tracked color
            config: Store configuration; required for save()
        """
        self._repo = repository if repository is not None else Repository()
        self._default_color = _validate_color(default_color)
        self._colors: dict[int, TagColor] = {}
        self._config = config
        self._ops_log_handler = None

    @classmethod
    def open(
        cls,
        store_path: Optional[str | Path] = None,
        *,
        config: Optional[StoreConfig] = None,
    ) -> "Archive":
        """
        Open (or initialize) a store directory.

        The config file is created with defaults on first use. If the
        repository document does not exist yet the archive starts empty.

        Raises:
            MalformedDocument: the existing document cannot be restored
        """
        if config is None:
            config = load_or_create_config(get_config_dir(store_path))

        document_path = config.document_path
        if document_path.exists():
            repo = loads(document_path.read_bytes())
            logger.info("Opened %s", document_path)
        else:
            repo = Repository()
            logger.debug("No document at %s, starting empty", document_path)

        archive = cls(repo, default_color=config.default_tag_color, config=config)

        from .logging_config import configure_ops_log
        archive._ops_log_handler = configure_ops_log(config.path)
        return archive

    @classmethod
    def from_document(cls, doc: dict, **kwargs) -> "Archive":
        return cls(restore(doc), **kwargs)

    @classmethod
    def from_json(cls, text: str | bytes, **kwargs) -> "Archive":
        return cls(loads(text), **kwargs)

    @property
    def repository(self) -> Repository:
        return self._repo

    @property
    def config(self) -> Optional[StoreConfig]:
        return self._config

    @property
    def default_color(self) -> TagColor:
        return self._default_color

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_document(self) -> dict:
        """Snapshot as a document dict (colors are not included)."""
        return save(self._repo)

    def to_json(self, indent: Optional[int] = None) -> str:
        return dumps(self._repo, indent=indent)

    def save(self) -> Path:
        """
        Write the repository document into the store directory.

        Writes a temporary sibling file and renames it over the
        document, so a crash never leaves a half-written document. A failed
        write removes the temporary file.

        Returns:
            Path to the document
        """
        if self._config is None:
            raise RuntimeError("Archive has no store configuration; use Archive.open() or to_json()")
        path = self._config.document_path
        path.parent.mkdir(parents=True, exist_ok=True)
        text = self.to_json(indent=self._config.indent or None)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.info("Saved %d tags, %d nodes to %s",
                    len(self._repo.taxonomy), len(self._repo.node_store), path)
        return path

    def replace_repository(self, repository: Repository) -> None:
        """Swap in a different repository (e.g. an imported document). Colors are reset."""
        self._repo = repository
        self._colors.clear()

    def close(self) -> None:
        """Release the ops log handler. Does not save."""
        from .logging_config import remove_ops_log
        remove_ops_log(self._ops_log_handler)
        self._ops_log_handler = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def _to_tag(self, record: TagRecord) -> Tag:
        return Tag(
            id=record.id,
            path=record.path,
            color=self._colors.get(record.id, self._default_color),
        )

    def upsert_tag(self, id: int, path: Sequence[str], color: Optional[TagColor] = None) -> Tag:
        """
        Insert a tag or replace its path.

        Args:
            color: Display color to track for this tag. None keeps the
                currently tracked color (or the default).

        Raises:
            ValueError: unknown color (checked before anything changes)
            InvalidId, InvalidPath, DuplicatePath: from the repository
        """
        if color is not None:
            _validate_color(color)
        record = self._repo.upsert_tag(id, path)
        if color is not None:
            self._colors[record.id] = color
        return self._to_tag(record)

    def set_tag_color(self, id: int, color: TagColor) -> Tag:
        """
        Track a display color for an existing tag.

        Raises:
            NotFound: the tag does not exist
        """
        _validate_color(color)
        record = self._repo.get_tag(id)
        if record is None:
            raise NotFound("Tag", id)
        self._colors[id] = color
        return self._to_tag(record)

    def delete_tag(self, id: int) -> bool:
        self._colors.pop(id, None)
        return self._repo.delete_tag(id)

    def get_tag(self, id: int) -> Optional[Tag]:
        record = self._repo.get_tag(id)
        return self._to_tag(record) if record is not None else None

    def get_all_tags(self) -> list[Tag]:
        return [self._to_tag(t) for t in self._repo.get_all_tags()]

    def get_tag_by_path(self, path: Sequence[Any]) -> Optional[Tag]:
        """Tag at exactly this path, or None."""
        record = self._repo.get_tag_by_path(path)
        return self._to_tag(record) if record is not None else None

    def get_child_tags(self, parent_id: int) -> list[Tag]:
        return [self._to_tag(t) for t in self._repo.get_child_tags(parent_id)]

    def get_descendant_tags(self, ancestor_id: int) -> list[Tag]:
        return [self._to_tag(t) for t in self._repo.get_descendant_tags(ancestor_id)]

    def ensure_tag_path(self, path: Sequence[str], color: Optional[TagColor] = None) -> Tag:
        """
        Return the tag at ``path``, creating it with a fresh id if needed.

        Only the tag itself is created; missing ancestors are not.
        """
        existing = self._repo.get_tag_by_path(path)
        if existing is not None:
            if color is not None:
                return self.set_tag_color(existing.id, color)
            return self._to_tag(existing)
        if color is not None:
            _validate_color(color)
        # Validate the path before consuming an id
        validate_path(path)
        return self.upsert_tag(self._repo.get_next_tag_id(), path, color)

    def get_next_tag_id(self) -> int:
        return self._repo.get_next_tag_id()

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def _to_node(self, node: Node) -> Node:
        node.tags = [self._to_tag(t) for t in node.tags]
        return node

    def upsert_node(self, id: int, data: Any, date_created: str, date_updated: str) -> Node:
        """
        Insert or replace a node; returns it with its current tags.

        ``data`` may be a FileData / BookmarkData value or a raw payload
        in either historical shape. Any ``type`` discriminant is dropped
        before it reaches the store.
        """
        record = self._repo.upsert_node(id, data, date_created, date_updated)
        return self._to_node(self._repo.get_node(record.id))

    def delete_node(self, id: int) -> bool:
        return self._repo.delete_node(id)

    def get_node(self, id: int) -> Optional[Node]:
        node = self._repo.get_node(id)
        return self._to_node(node) if node is not None else None

    def get_all_nodes(self) -> list[Node]:
        return [self._to_node(n) for n in self._repo.get_all_nodes()]

    def get_next_node_id(self) -> int:
        return self._repo.get_next_node_id()

    def tag_node(self, node_id: int, tag_id: int) -> bool:
        return self._repo.tag_node(node_id, tag_id)

    def untag_node(self, node_id: int, tag_id: int) -> bool:
        return self._repo.untag_node(node_id, tag_id)

    def get_nodes_with_tag(self, tag_id: int) -> list[Node]:
        return [self._to_node(n) for n in self._repo.get_nodes_with_tag(tag_id)]

    def stats(self) -> dict:
        return self._repo.stats()
