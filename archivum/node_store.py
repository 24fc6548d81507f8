"""
Node store: content nodes keyed by id.

Holds the payload and the caller-supplied timestamps of every node.
Tags are not stored on nodes; reads that need them join through the
AssociationIndex (see Repository).
"""

import logging
from typing import Any, Iterator, Optional

from .associations import AssociationIndex
from .errors import InvalidTimestamp
from .types import NodeRecord, decode_node_data, validate_id

logger = logging.getLogger(__name__)


class NodeStore:
    """
    In-memory store for node records.

    Upsert has full-replace semantics for payload and timestamps and
    leaves associations alone. Delete also clears the node's
    associations.
    """

    def __init__(self, associations: AssociationIndex):
        self._associations = associations
        self._nodes: dict[int, NodeRecord] = {}

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def upsert(
        self,
        id: int,
        data: Any,
        date_created: str,
        date_updated: str,
    ) -> NodeRecord:
        """
        Insert or replace a node.

        Args:
            id: Node id
            data: FileData / BookmarkData, or a raw payload in either
                historical shape (normalized via decode_node_data)
            date_created: Creation timestamp, stored verbatim
            date_updated: Update timestamp, stored verbatim

        Returns:
            The stored NodeRecord

        Raises:
            InvalidId: id is not a positive integer
            InvalidTimestamp: a timestamp is not a string
        """
        id = validate_id(id, "node id")
        for name, value in (("date_created", date_created), ("date_updated", date_updated)):
            if not isinstance(value, str):
                raise InvalidTimestamp(f"{name} must be a string: {value!r}")
        record = NodeRecord(
            id=id,
            data=decode_node_data(data),
            date_created=date_created,
            date_updated=date_updated,
        )
        replaced = id in self._nodes
        self._nodes[id] = record
        logger.debug("%s node %d (%s)", "Replaced" if replaced else "Inserted", id, record.data.kind)
        return record

    def delete(self, id: int) -> bool:
        """
        Delete a node and every association mentioning it.

        Deleting an unknown id is a no-op.

        Returns:
            True if the node existed
        """
        if self._nodes.pop(id, None) is None:
            return False
        self._associations.remove_node(id)
        logger.debug("Deleted node %d", id)
        return True

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def get(self, id: int) -> Optional[NodeRecord]:
        return self._nodes.get(id)

    def exists(self, id: int) -> bool:
        return id in self._nodes

    def all(self) -> list[NodeRecord]:
        """All nodes, in insertion order."""
        return list(self._nodes.values())

    def __iter__(self) -> Iterator[NodeRecord]:
        return iter(list(self._nodes.values()))

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, id: object) -> bool:
        return id in self._nodes
