"""
Many-to-many index between node ids and tag ids.

The index stores pairs only; it has no knowledge of whether the ids
exist. Existence checks and cascades are the Repository's job, which
calls remove_node / remove_tag in the same operation that deletes the
entity.
"""

import logging
from typing import Iterator

logger = logging.getLogger(__name__)


class AssociationIndex:
    """
    Set of (node_id, tag_id) pairs, indexed in both directions.

    Both directions keep insertion order: tags_of() lists a node's tags
    in the order they were attached, nodes_with_tag() lists a tag's nodes
    in the order they were tagged.
    """

    def __init__(self):
        # dict-as-ordered-set: values are always None
        self._by_node: dict[int, dict[int, None]] = {}
        self._by_tag: dict[int, dict[int, None]] = {}

    def add(self, node_id: int, tag_id: int) -> bool:
        """
        Add a pair. Re-adding an existing pair is a no-op.

        Returns:
            True if the pair was new
        """
        tags = self._by_node.setdefault(node_id, {})
        if tag_id in tags:
            return False
        tags[tag_id] = None
        self._by_tag.setdefault(tag_id, {})[node_id] = None
        return True

    def remove(self, node_id: int, tag_id: int) -> bool:
        """
        Remove a pair. Removing an absent pair is a no-op.

        Returns:
            True if the pair existed
        """
        tags = self._by_node.get(node_id)
        if not tags or tag_id not in tags:
            return False
        del tags[tag_id]
        if not tags:
            del self._by_node[node_id]
        nodes = self._by_tag[tag_id]
        del nodes[node_id]
        if not nodes:
            del self._by_tag[tag_id]
        return True

    def contains(self, node_id: int, tag_id: int) -> bool:
        return tag_id in self._by_node.get(node_id, {})

    def tags_of(self, node_id: int) -> list[int]:
        """Tag ids attached to a node, in attachment order."""
        return list(self._by_node.get(node_id, ()))

    def nodes_with_tag(self, tag_id: int) -> list[int]:
        """Node ids carrying a tag, in tagging order. Empty for unknown tags."""
        return list(self._by_tag.get(tag_id, ()))

    def remove_node(self, node_id: int) -> int:
        """
        Drop every pair mentioning a node.

        Returns:
            Number of pairs removed
        """
        tags = self._by_node.pop(node_id, {})
        for tag_id in tags:
            nodes = self._by_tag[tag_id]
            del nodes[node_id]
            if not nodes:
                del self._by_tag[tag_id]
        if tags:
            logger.debug("Cleared %d associations for node %d", len(tags), node_id)
        return len(tags)

    def remove_tag(self, tag_id: int) -> int:
        """
        Drop every pair mentioning a tag.

        Returns:
            Number of pairs removed
        """
        nodes = self._by_tag.pop(tag_id, {})
        for node_id in nodes:
            tags = self._by_node[node_id]
            del tags[tag_id]
            if not tags:
                del self._by_node[node_id]
        if nodes:
            logger.debug("Cleared %d associations for tag %d", len(nodes), tag_id)
        return len(nodes)

    def pairs(self) -> Iterator[tuple[int, int]]:
        """Iterate all (node_id, tag_id) pairs, grouped by node."""
        for node_id, tags in self._by_node.items():
            for tag_id in tags:
                yield node_id, tag_id

    def __len__(self) -> int:
        return sum(len(tags) for tags in self._by_node.values())
