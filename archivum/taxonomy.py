"""
Tag taxonomy: a forest of tags addressed by path.

The hierarchy is derived from path prefixes. There are no parent
pointers, and changing a tag's path does not touch any other tag:
descendants keep their old paths until the caller edits them too.
"""

import logging
from typing import Any, Iterator, Optional, Sequence

from .associations import AssociationIndex
from .errors import DuplicatePath
from .types import TagPath, TagRecord, validate_id, validate_path

logger = logging.getLogger(__name__)


class TagTaxonomy:
    """
    Tags keyed by id, with a unique index on path.

    Deleting a tag also removes its associations from the shared
    AssociationIndex, so the two never disagree.
    """

    def __init__(self, associations: AssociationIndex):
        self._associations = associations
        self._tags: dict[int, TagRecord] = {}
        self._by_path: dict[TagPath, int] = {}

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def upsert(self, id: int, path: Sequence[str]) -> TagRecord:
        """
        Insert a tag or replace the path of an existing one.

        Validation happens before any state changes.

        Raises:
            InvalidId: id is not a positive integer
            InvalidPath: path is empty or has an empty segment
            DuplicatePath: another tag already owns the path
        """
        id = validate_id(id, "tag id")
        tag_path = validate_path(path)

        owner = self._by_path.get(tag_path)
        if owner is not None and owner != id:
            raise DuplicatePath(tag_path, owner)

        existing = self._tags.get(id)
        if existing is not None and existing.path != tag_path:
            del self._by_path[existing.path]

        record = TagRecord(id=id, path=tag_path)
        self._tags[id] = record
        self._by_path[tag_path] = id
        logger.debug("Upserted tag %d %s", id, "/".join(tag_path))
        return record

    def delete(self, id: int) -> bool:
        """
        Delete a tag and every association mentioning it.

        Deleting an unknown id is a no-op.

        Returns:
            True if the tag existed
        """
        record = self._tags.pop(id, None)
        if record is None:
            return False
        del self._by_path[record.path]
        self._associations.remove_tag(id)
        logger.debug("Deleted tag %d %s", id, "/".join(record.path))
        return True

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def get(self, id: int) -> Optional[TagRecord]:
        return self._tags.get(id)

    def exists(self, id: int) -> bool:
        return id in self._tags

    def get_by_path(self, path: Sequence[Any]) -> Optional[int]:
        """
        Exact-match lookup over the full path.

        Returns:
            The tag id, or None if no tag has this path (including paths
            that could never be valid, such as an empty one)
        """
        if isinstance(path, (str, bytes)) or not isinstance(path, Sequence):
            return None
        try:
            return self._by_path.get(tuple(path))
        except TypeError:
            # unhashable segment: cannot match anything
            return None

    def children(self, parent_id: int) -> list[TagRecord]:
        """Tags whose path is the parent's path plus exactly one segment."""
        parent = self._tags.get(parent_id)
        if parent is None:
            return []
        return [t for t in self._tags.values() if t.is_child_of(parent.path)]

    def descendants(self, ancestor_id: int) -> list[TagRecord]:
        """Tags whose path strictly extends the ancestor's path, at any depth."""
        ancestor = self._tags.get(ancestor_id)
        if ancestor is None:
            return []
        return [t for t in self._tags.values() if t.is_descendant_of(ancestor.path)]

    def all(self) -> list[TagRecord]:
        """All tags, in insertion order."""
        return list(self._tags.values())

    def __iter__(self) -> Iterator[TagRecord]:
        return iter(list(self._tags.values()))

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, id: object) -> bool:
        return id in self._tags
