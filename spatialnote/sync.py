"""Parent-to-child content propagation."""

import logging
from typing import Dict, List, Optional, Set

from spatialnote.documents import section_map
from spatialnote.models import Node, merge_node_data

logger = logging.getLogger(__name__)


class ContentSynchronizer:
    """Cascades a node's content edit down its ``parentId`` lineage.

    Children with a ``sectionLabel`` receive the matching heading section
    of the new content; children without one mirror it verbatim. A pass
    touches each node id at most once, so a cyclic lineage terminates.
    Children are resolved against the collection as it was before the pass
    started.
    """

    def propagate(self, nodes: List[Node], node_id: str, partial: dict) -> List[str]:
        """Merge ``partial`` into ``node_id`` and cascade content to children.

        ``nodes`` is updated in place. Returns the ids that were updated, in
        visit order; empty if ``node_id`` is unknown.
        """
        by_id = {n.id: n for n in nodes}
        if node_id not in by_id:
            return []

        before: Dict[str, List[Node]] = {}
        for node in nodes:
            parent_id = node.parent_id
            if parent_id is not None:
                before.setdefault(parent_id, []).append(node.copy())

        visited: Set[str] = set()
        updated: List[str] = []
        self._update(by_id, before, node_id, partial, visited, updated)
        return updated

    def _update(self, by_id: Dict[str, Node], children_of: Dict[str, List[Node]],
                node_id: str, partial: dict, visited: Set[str], updated: List[str]):
        if node_id in visited:
            return
        visited.add(node_id)

        node = by_id.get(node_id)
        if node is None:
            return
        node.data = merge_node_data(node.data, partial)
        updated.append(node_id)

        if "content" not in partial:
            return

        new_content = partial["content"]
        sections: Optional[Dict[str, str]] = None
        for child in children_of.get(node_id, []):
            label = child.section_label
            if not label:
                section = new_content
            else:
                if sections is None:
                    sections = section_map(new_content)
                section = sections.get(label)
                if section is None:
                    logger.debug("Section '%s' not found for node %s; left unchanged",
                                 label, child.id)
                    continue
            if section != child.data.get("content"):
                self._update(by_id, children_of, child.id, {"content": section}, visited, updated)
