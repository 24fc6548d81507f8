"""
Archivum

An embeddable repository of content nodes (files, bookmarks) organized
by hierarchical, path-addressed tags.

Quick Start:
    from archivum import Archive, FileData, utc_now

    ar = Archive()
    work = ar.upsert_tag(ar.get_next_tag_id(), ["work"])
    node = ar.upsert_node(ar.get_next_node_id(), FileData("a.txt", 5),
                          utc_now(), utc_now())
    ar.tag_node(node.id, work.id)
    ar.get_nodes_with_tag(work.id)

CLI Usage:
    archivum add-tag work/projects
    archivum add-bookmark https://example.com --title Example
    archivum tag 1 2
    archivum tagged 2 --json

Default Store:
    ~/.archivum/ (created automatically).
    Override with ARCHIVUM_STORE_PATH or an explicit path argument.

The whole repository is saved as one JSON document (repository.json)
next to a TOML config file (archivum.toml) in the store directory.
"""

from .api import Archive
from .errors import (
    ArchivumError,
    DuplicatePath,
    InvalidId,
    InvalidPath,
    InvalidTimestamp,
    MalformedDocument,
    NotFound,
)
from .repository import Repository
from .serialization import dumps, loads, restore, save
from .types import (
    DEFAULT_TAG_COLOR,
    TAG_COLORS,
    BookmarkData,
    FileData,
    Node,
    NodeData,
    Tag,
    TagRecord,
    decode_node_data,
    encode_node_data,
    utc_now,
)

__version__ = "0.1.0"
__all__ = [
    "Archive",
    "Repository",
    "ArchivumError",
    "NotFound",
    "DuplicatePath",
    "InvalidPath",
    "InvalidId",
    "InvalidTimestamp",
    "MalformedDocument",
    "save",
    "restore",
    "dumps",
    "loads",
    "Tag",
    "TagRecord",
    "Node",
    "NodeData",
    "FileData",
    "BookmarkData",
    "decode_node_data",
    "encode_node_data",
    "utc_now",
    "DEFAULT_TAG_COLOR",
    "TAG_COLORS",
]
