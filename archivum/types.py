"""
Data types for the archivum repository.

Stored records (TagRecord, NodeRecord) are what the core keeps.
Materialized values (Tag, Node) are what callers read: a Node carries
its tags resolved through the association index, a Tag carries a
display color that is never persisted.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Sequence, Union

from .errors import InvalidId, InvalidPath


TagColor = Literal["red", "blue", "green", "yellow", "purple", "gray"]

# Display-only; the core never stores a color
TAG_COLORS: tuple[str, ...] = ("red", "blue", "green", "yellow", "purple", "gray")
DEFAULT_TAG_COLOR: TagColor = "gray"

TagPath = tuple[str, ...]

# Payload discriminant values and the variant keys they pair with
FILE_KIND = "file"
BOOKMARK_KIND = "bookmark"
FILE_KEY = "File"
BOOKMARK_KEY = "Bookmark"
DISCRIMINANT_KEY = "type"


def utc_now() -> str:
    """Current UTC timestamp in canonical format: YYYY-MM-DDTHH:MM:SS."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def validate_id(id: Any, kind: str = "id") -> int:
    """Validate that an id is a positive integer and return it."""
    # bool is an int subclass; True is not an id
    if isinstance(id, bool) or not isinstance(id, int) or id < 1:
        raise InvalidId(f"{kind} must be a positive integer: {id!r}")
    return id


def validate_path(path: Any) -> TagPath:
    """
    Validate a tag path and return it as a tuple of segments.

    A path is a non-empty sequence of non-empty strings. A bare string
    is rejected rather than split into characters.
    """
    if isinstance(path, (str, bytes)) or not isinstance(path, Sequence):
        raise InvalidPath(f"Tag path must be a sequence of strings: {path!r}")
    if not path:
        raise InvalidPath("Tag path must have at least one segment")
    for segment in path:
        if not isinstance(segment, str) or not segment:
            raise InvalidPath(f"Tag path segments must be non-empty strings: {list(path)!r}")
    return tuple(path)


def is_color(value: Any) -> bool:
    """Check if a value is one of the known tag colors."""
    return isinstance(value, str) and value in TAG_COLORS


# ---------------------------------------------------------------------------
# Node payload: a closed union over File and Bookmark
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileData:
    """File payload."""
    filename: str = ""
    size: int = 0

    kind = FILE_KIND


@dataclass(frozen=True)
class BookmarkData:
    """Bookmark payload."""
    url: str = ""
    title: Optional[str] = None

    kind = BOOKMARK_KIND


NodeData = Union[FileData, BookmarkData]

# Safe default when a payload cannot be recognised
EMPTY_NODE_DATA = FileData(filename="", size=0)


def _file_from_fields(fields: dict) -> FileData:
    filename = fields.get("filename")
    size = fields.get("size")
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        size = 0
    return FileData(
        filename=filename if isinstance(filename, str) else "",
        size=size,
    )


def _bookmark_from_fields(fields: dict) -> BookmarkData:
    url = fields.get("url")
    title = fields.get("title")
    return BookmarkData(
        url=url if isinstance(url, str) else "",
        title=title if isinstance(title, str) else None,
    )


def decode_node_data(data: Any) -> NodeData:
    """
    Normalize a stored or caller-supplied payload into a NodeData value.

    Two historical shapes are accepted:
    - discriminated: ``{"type": "file", "File": {...}}``
    - bare variant-keyed (legacy): ``{"Bookmark": {...}}``

    Precedence: a discriminant whose matching variant field is present
    wins; otherwise the variant is inferred from whichever variant key is
    present (File first); otherwise the empty File payload is returned.
    Typed values go through the same field rules as raw ones, so a
    negative size becomes 0 either way. Never raises.
    """
    if isinstance(data, FileData):
        return _file_from_fields(asdict(data))
    if isinstance(data, BookmarkData):
        return _bookmark_from_fields(asdict(data))
    if not isinstance(data, dict):
        return EMPTY_NODE_DATA

    file_fields = data.get(FILE_KEY)
    bookmark_fields = data.get(BOOKMARK_KEY)
    kind = data.get(DISCRIMINANT_KEY)

    if kind == FILE_KIND and isinstance(file_fields, dict):
        return _file_from_fields(file_fields)
    if kind == BOOKMARK_KIND and isinstance(bookmark_fields, dict):
        return _bookmark_from_fields(bookmark_fields)

    # Discriminant missing or inconsistent: infer from the variant key
    if isinstance(file_fields, dict):
        return _file_from_fields(file_fields)
    if isinstance(bookmark_fields, dict):
        return _bookmark_from_fields(bookmark_fields)

    return EMPTY_NODE_DATA


def encode_node_data(data: NodeData) -> dict:
    """Encode a payload in the bare variant-keyed shape used by documents."""
    if isinstance(data, FileData):
        return {FILE_KEY: {"filename": data.filename, "size": data.size}}
    if isinstance(data, BookmarkData):
        fields: dict[str, Any] = {"url": data.url}
        if data.title is not None:
            fields["title"] = data.title
        return {BOOKMARK_KEY: fields}
    raise TypeError(f"Unknown node payload type: {type(data).__name__}")


def tagged_node_data(data: NodeData) -> dict:
    """Encode a payload with its ``type`` discriminant, for display output."""
    encoded = encode_node_data(data)
    encoded[DISCRIMINANT_KEY] = data.kind
    return encoded


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TagRecord:
    """A tag as stored in the taxonomy: id and path, nothing else."""
    id: int
    path: TagPath

    @property
    def name(self) -> str:
        """Last path segment."""
        return self.path[-1]

    @property
    def parent_path(self) -> TagPath:
        """Path of the (possibly nonexistent) parent tag; empty for roots."""
        return self.path[:-1]

    def is_child_of(self, parent: TagPath) -> bool:
        """True if this path is exactly one segment longer than ``parent``, and prefixed by it."""
        return len(self.path) == len(parent) + 1 and self.path[:-1] == parent

    def is_descendant_of(self, ancestor: TagPath) -> bool:
        """True if this path strictly extends ``ancestor``."""
        return len(self.path) > len(ancestor) and self.path[:len(ancestor)] == ancestor

    def to_dict(self) -> dict:
        return {"id": self.id, "path": list(self.path)}


@dataclass(frozen=True)
class NodeRecord:
    """
    A node as stored in the node store.

    Timestamps are caller-supplied strings, stored verbatim. Tags are not
    stored here; they live in the association index.
    """
    id: int
    data: NodeData
    date_created: str
    date_updated: str


# ---------------------------------------------------------------------------
# Materialized values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Tag:
    """A tag as presented to callers, with its display color."""
    id: int
    path: TagPath
    color: TagColor = DEFAULT_TAG_COLOR

    @property
    def name(self) -> str:
        return self.path[-1]

    def to_dict(self) -> dict:
        return {"id": self.id, "path": list(self.path), "color": self.color}


@dataclass
class Node:
    """
    A node with its tags resolved.

    ``tags`` holds TagRecord values when produced by the core Repository
    and Tag values when produced by the Archive wrapper. ``deleted`` is a
    presentation-layer flag; the core always hard-deletes and leaves it
    False.
    """
    id: int
    data: NodeData
    tags: list = field(default_factory=list)
    date_created: str = ""
    date_updated: str = ""
    deleted: bool = False

    @property
    def tag_ids(self) -> list[int]:
        return [t.id for t in self.tags]

    def to_dict(self) -> dict:
        """Serialize to a JSON-ready dict (payload in discriminated shape)."""
        return {
            "id": self.id,
            "data": tagged_node_data(self.data),
            "tags": [t.to_dict() for t in self.tags],
            "date_created": self.date_created,
            "date_updated": self.date_updated,
        }
