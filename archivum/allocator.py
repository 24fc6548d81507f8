"""
Identifier allocation for tags and nodes.

Each namespace has its own counter. A counter only moves forward: ids
are never reissued, even after the entity they named is deleted.
"""

import logging

logger = logging.getLogger(__name__)

FIRST_ID = 1


class IdAllocator:
    """Monotonic id counters for the tag and node namespaces."""

    def __init__(self, next_tag_id: int = FIRST_ID, next_node_id: int = FIRST_ID):
        self._next_tag_id = max(FIRST_ID, next_tag_id)
        self._next_node_id = max(FIRST_ID, next_node_id)

    @property
    def peek_tag_id(self) -> int:
        """The id the next call to next_tag_id() will return."""
        return self._next_tag_id

    @property
    def peek_node_id(self) -> int:
        """The id the next call to next_node_id() will return."""
        return self._next_node_id

    def next_tag_id(self) -> int:
        """Issue a fresh tag id."""
        id = self._next_tag_id
        self._next_tag_id += 1
        return id

    def next_node_id(self) -> int:
        """Issue a fresh node id."""
        id = self._next_node_id
        self._next_node_id += 1
        return id

    def observe_tag_id(self, id: int) -> None:
        """
        Record that a tag id is in use.

        Ids can be chosen by callers rather than issued here; observing
        them keeps the counter ahead of every id ever assigned.
        """
        if id >= self._next_tag_id:
            self._next_tag_id = id + 1

    def observe_node_id(self, id: int) -> None:
        """Record that a node id is in use."""
        if id >= self._next_node_id:
            self._next_node_id = id + 1

    def reseed(self, next_tag_id: int, next_node_id: int) -> None:
        """
        Move both counters forward to at least the given values.

        Used on restore. Counters never move backwards.
        """
        self._next_tag_id = max(self._next_tag_id, next_tag_id)
        self._next_node_id = max(self._next_node_id, next_node_id)
        logger.debug("Allocator reseeded: next tag %d, next node %d",
                     self._next_tag_id, self._next_node_id)

    def to_dict(self) -> dict:
        return {"next_tag_id": self._next_tag_id, "next_node_id": self._next_node_id}

    def __repr__(self) -> str:
        return f"IdAllocator(next_tag_id={self._next_tag_id}, next_node_id={self._next_node_id})"
