"""
Whole-repository snapshots.

A document is a plain dict, JSON-ready::

    {"format": "archivum-repository", "version": 1, "saved_at": "...",
     "next_tag_id": N, "next_node_id": M,
     "tags":  [{"id": 1, "path": ["work"]}, ...],
     "nodes": [{"id": 10, "data": {"File": {"filename": "a.txt", "size": 5}},
                "tag_ids": [1], "date_created": "...", "date_updated": "..."}, ...]}

Node payloads are always written in the bare variant-keyed shape. On
read, payloads go through decode_node_data, so documents written with a
``type`` discriminant (or with no usable payload at all) still load.

Tag colors are display-only and are not part of the document.
"""

import json
import logging
from typing import Any

from .errors import MalformedDocument
from .repository import Repository
from .types import decode_node_data, encode_node_data, utc_now

logger = logging.getLogger(__name__)

DOCUMENT_FORMAT = "archivum-repository"
DOCUMENT_VERSION = 1


def save(repo: Repository) -> dict:
    """
    Snapshot the entire repository as a document dict.

    Tags and nodes appear in insertion order; each node's tag_ids in
    attachment order. restore(save(repo)) answers every query the same
    way repo does.
    """
    associations = repo.associations
    return {
        "format": DOCUMENT_FORMAT,
        "version": DOCUMENT_VERSION,
        "saved_at": utc_now(),
        **repo.allocator.to_dict(),
        "tags": [tag.to_dict() for tag in repo.taxonomy],
        "nodes": [
            {
                "id": node.id,
                "data": encode_node_data(node.data),
                "tag_ids": associations.tags_of(node.id),
                "date_created": node.date_created,
                "date_updated": node.date_updated,
            }
            for node in repo.node_store
        ],
    }


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise MalformedDocument(message)


def _is_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _check_header(doc: dict) -> None:
    fmt = doc.get("format", DOCUMENT_FORMAT)
    _require(fmt == DOCUMENT_FORMAT,
             f"Invalid document format (expected {DOCUMENT_FORMAT!r}): {fmt!r}")
    version = doc.get("version", DOCUMENT_VERSION)
    _require(isinstance(version, int) and not isinstance(version, bool),
             f"Document version must be an integer: {version!r}")
    _require(version <= DOCUMENT_VERSION,
             f"Document version {version} is not supported "
             f"(this version supports up to {DOCUMENT_VERSION})")


def _counter(doc: dict, key: str) -> int:
    value = doc.get(key, 1)
    _require(_is_id(value), f"{key} must be a positive integer: {value!r}")
    return value


def restore(doc: Any) -> Repository:
    """
    Rebuild a repository from a document.

    The whole document is checked before anything is returned: on any
    structural problem MalformedDocument is raised and no repository is
    produced. Problems include missing ``tags`` / ``nodes``, bad ids or
    paths, duplicate ids or paths, missing timestamps, and tag_ids that
    reference tags not in the document.

    The allocator is reseeded past the highest id present (or the saved
    counters, whichever is larger).
    """
    _require(isinstance(doc, dict), f"Document must be an object, got {type(doc).__name__}")
    _check_header(doc)

    tags = doc.get("tags")
    nodes = doc.get("nodes")
    _require(isinstance(tags, list), "Document is missing a 'tags' list")
    _require(isinstance(nodes, list), "Document is missing a 'nodes' list")
    next_tag_id = _counter(doc, "next_tag_id")
    next_node_id = _counter(doc, "next_node_id")

    repo = Repository()

    for i, entry in enumerate(tags):
        _require(isinstance(entry, dict), f"tags[{i}] must be an object")
        tag_id = entry.get("id")
        _require(_is_id(tag_id), f"tags[{i}].id must be a positive integer: {tag_id!r}")
        _require(tag_id not in repo.taxonomy, f"Duplicate tag id: {tag_id}")
        path = entry.get("path")
        _require(isinstance(path, (list, tuple)), f"tags[{i}].path must be a list: {path!r}")
        try:
            repo.upsert_tag(tag_id, path)
        except ValueError as e:
            # InvalidPath / DuplicatePath from the taxonomy
            raise MalformedDocument(f"tags[{i}]: {e}") from e

    for i, entry in enumerate(nodes):
        _require(isinstance(entry, dict), f"nodes[{i}] must be an object")
        node_id = entry.get("id")
        _require(_is_id(node_id), f"nodes[{i}].id must be a positive integer: {node_id!r}")
        _require(node_id not in repo.node_store, f"Duplicate node id: {node_id}")
        date_created = entry.get("date_created")
        date_updated = entry.get("date_updated")
        _require(isinstance(date_created, str), f"nodes[{i}].date_created must be a string")
        _require(isinstance(date_updated, str), f"nodes[{i}].date_updated must be a string")
        tag_ids = entry.get("tag_ids", [])
        _require(isinstance(tag_ids, (list, tuple)), f"nodes[{i}].tag_ids must be a list")
        for tag_id in tag_ids:
            _require(_is_id(tag_id) and tag_id in repo.taxonomy,
                     f"nodes[{i}] references unknown tag id: {tag_id!r}")

        repo.upsert_node(node_id, decode_node_data(entry.get("data")), date_created, date_updated)
        for tag_id in tag_ids:
            repo.associations.add(node_id, tag_id)

    repo.allocator.reseed(next_tag_id, next_node_id)
    logger.info("Restored repository: %d tags, %d nodes",
                len(repo.taxonomy), len(repo.node_store))
    return repo


def dumps(repo: Repository, indent: int | None = None) -> str:
    """Serialize a repository to a JSON string."""
    return json.dumps(save(repo), indent=indent, ensure_ascii=False)


def loads(text: str | bytes) -> Repository:
    """
    Restore a repository from a JSON string.

    Raises:
        MalformedDocument: text is not valid JSON or not a valid document
    """
    try:
        doc = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedDocument(f"Document is not valid JSON: {e}") from e
    return restore(doc)
