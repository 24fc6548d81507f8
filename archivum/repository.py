"""
Core repository: tags, nodes, their associations and the id allocator.

This is the minimal in-process engine:
- mutations: upsert_tag / delete_tag / upsert_node / delete_node /
  tag_node / untag_node
- queries: get_tag / get_all_tags / get_tag_by_path / get_child_tags /
  get_node / get_all_nodes / get_nodes_with_tag
- allocation: get_next_tag_id / get_next_node_id

Single-writer and synchronous. Nothing here does I/O; see
serialization.py for snapshots and api.py for file persistence.
"""

import logging
from typing import Any, Optional, Sequence

from .allocator import IdAllocator
from .associations import AssociationIndex
from .errors import NotFound
from .node_store import NodeStore
from .taxonomy import TagTaxonomy
from .types import Node, NodeRecord, TagRecord, validate_id

logger = logging.getLogger(__name__)


class Repository:
    """
    Aggregate of the tag taxonomy, node store, association index and
    id allocator.

    Example:
        repo = Repository()
        work = repo.upsert_tag(repo.get_next_tag_id(), ["work"])
        node = repo.upsert_node(repo.get_next_node_id(),
                                FileData("a.txt", 5),
                                "2026-01-01", "2026-01-01")
        repo.tag_node(node.id, work.id)
        repo.get_nodes_with_tag(work.id)
    """

    def __init__(self) -> None:
        self._allocator = IdAllocator()
        self._associations = AssociationIndex()
        self._tags = TagTaxonomy(self._associations)
        self._nodes = NodeStore(self._associations)

    @property
    def allocator(self) -> IdAllocator:
        return self._allocator

    @property
    def associations(self) -> AssociationIndex:
        return self._associations

    @property
    def taxonomy(self) -> TagTaxonomy:
        return self._tags

    @property
    def node_store(self) -> NodeStore:
        return self._nodes

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def upsert_tag(self, id: int, path: Sequence[str]) -> TagRecord:
        """
        Insert a tag or replace an existing tag's path.

        Only this tag changes. Tags below the old path keep their paths;
        moving a subtree means upserting every tag in it.

        Raises:
            InvalidId, InvalidPath, DuplicatePath
        """
        record = self._tags.upsert(id, path)
        self._allocator.observe_tag_id(record.id)
        return record

    def delete_tag(self, id: int) -> bool:
        """Delete a tag and all its associations. No-op if absent."""
        return self._tags.delete(id)

    def get_tag(self, id: int) -> Optional[TagRecord]:
        return self._tags.get(id)

    def get_all_tags(self) -> list[TagRecord]:
        return self._tags.all()

    def get_tag_by_path(self, path: Sequence[Any]) -> Optional[TagRecord]:
        """Look up a tag by its full path. None if there is no such tag."""
        tag_id = self._tags.get_by_path(path)
        if tag_id is None:
            return None
        return self._tags.get(tag_id)

    def get_child_tags(self, parent_id: int) -> list[TagRecord]:
        """Direct children of a tag. Empty if the parent does not exist."""
        return self._tags.children(parent_id)

    def get_descendant_tags(self, ancestor_id: int) -> list[TagRecord]:
        """All tags below a tag, at any depth. Empty if it does not exist."""
        return self._tags.descendants(ancestor_id)

    def get_next_tag_id(self) -> int:
        """Issue a tag id that has never been assigned."""
        return self._allocator.next_tag_id()

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def upsert_node(
        self,
        id: int,
        data: Any,
        date_created: str,
        date_updated: str,
    ) -> NodeRecord:
        """
        Insert or fully replace a node's payload and timestamps.

        Existing associations of the node are kept. ``data`` may be a
        FileData / BookmarkData value or a raw payload in either
        historical shape.

        Raises:
            InvalidId, InvalidTimestamp
        """
        record = self._nodes.upsert(id, data, date_created, date_updated)
        self._allocator.observe_node_id(record.id)
        return record

    def delete_node(self, id: int) -> bool:
        """Delete a node and all its associations. No-op if absent."""
        return self._nodes.delete(id)

    def get_node(self, id: int) -> Optional[Node]:
        record = self._nodes.get(id)
        if record is None:
            return None
        return self._materialize(record)

    def get_all_nodes(self) -> list[Node]:
        return [self._materialize(r) for r in self._nodes.all()]

    def get_node_tags(self, id: int) -> list[TagRecord]:
        """
        Tags attached to a node, in attachment order.

        Tag ids that no longer resolve are skipped rather than reported.
        """
        tags = []
        for tag_id in self._associations.tags_of(id):
            tag = self._tags.get(tag_id)
            if tag is not None:
                tags.append(tag)
        return tags

    def get_next_node_id(self) -> int:
        """Issue a node id that has never been assigned."""
        return self._allocator.next_node_id()

    def _materialize(self, record: NodeRecord) -> Node:
        return Node(
            id=record.id,
            data=record.data,
            tags=self.get_node_tags(record.id),
            date_created=record.date_created,
            date_updated=record.date_updated,
        )

    # -------------------------------------------------------------------------
    # Associations
    # -------------------------------------------------------------------------

    def tag_node(self, node_id: int, tag_id: int) -> bool:
        """
        Attach a tag to a node. Repeating an existing pair is a no-op.

        Returns:
            True if the pair was new

        Raises:
            InvalidId: either id is not a positive integer
            NotFound: the node or the tag does not exist
        """
        validate_id(node_id, "node id")
        validate_id(tag_id, "tag id")
        if not self._nodes.exists(node_id):
            raise NotFound("Node", node_id)
        if not self._tags.exists(tag_id):
            raise NotFound("Tag", tag_id)
        added = self._associations.add(node_id, tag_id)
        if added:
            logger.debug("Tagged node %d with tag %d", node_id, tag_id)
        return added

    def untag_node(self, node_id: int, tag_id: int) -> bool:
        """
        Detach a tag from a node. No-op if the pair does not exist.

        Returns:
            True if the pair existed
        """
        removed = self._associations.remove(node_id, tag_id)
        if removed:
            logger.debug("Untagged node %d from tag %d", node_id, tag_id)
        return removed

    def get_nodes_with_tag(self, tag_id: int) -> list[Node]:
        """
        Nodes carrying a tag, in tagging order.

        An unknown tag yields an empty list, never an error.
        """
        nodes = []
        for node_id in self._associations.nodes_with_tag(tag_id):
            record = self._nodes.get(node_id)
            if record is not None:
                nodes.append(self._materialize(record))
        return nodes

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def stats(self) -> dict:
        """Counts of tags, nodes and associations, plus allocator state."""
        return {
            "tags": len(self._tags),
            "nodes": len(self._nodes),
            "associations": len(self._associations),
            **self._allocator.to_dict(),
        }

    def __repr__(self) -> str:
        return (f"Repository(tags={len(self._tags)}, nodes={len(self._nodes)}, "
                f"associations={len(self._associations)})")
