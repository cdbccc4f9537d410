"""Mind-map decomposition: turn one note into a tree of linked notes."""

import logging
from typing import List

from spatialnote.documents import segment_by_headings, extract_blocks, merge_header_blocks
from spatialnote.graph import GraphStore, BRANCH_OFFSET_X, edge_id_for
from spatialnote.models import Edge, Position, DEFAULT_NODE_TYPE, INITIAL_STYLE_KEY
from spatialnote.settings import label_for

logger = logging.getLogger(__name__)

# Layout constants
SECTION_SPACING = 500
PARAGRAPH_SPACING = 250
PARAGRAPH_CARD_STYLE = {"width": 300, "height": 200}


def fan_position(anchor: Position, index: int, count: int, spacing: float) -> Position:
    """Place child ``index`` of ``count`` in a vertical fan centred on the anchor."""
    return Position(
        x=anchor.x + BRANCH_OFFSET_X,
        y=anchor.y + (index - (count - 1) / 2) * spacing,
    )


class MindMapDecomposer:
    """Splits a node's content into child nodes linked from the source.

    Shallow mode creates one child per heading. Deep mode also splits each
    heading's section into paragraph children hung off that heading's
    child. Content without headings goes straight to the paragraph split.
    The whole run is recorded as a single history entry; the source node
    itself is only read.
    """

    def __init__(self, store: GraphStore):
        self.store = store

    def decompose(self, node_id: str, deep: bool = False) -> List[str]:
        """Decompose ``node_id`` and return the ids of the created nodes."""
        source = self.store.get_node(node_id)
        if source is None:
            logger.debug("decompose: unknown node %s", node_id)
            return []

        content = source.content
        anchor = Position(source.position.x, source.position.y)
        created: List[str] = []

        sections = segment_by_headings(content)
        if sections:
            for index, section in enumerate(sections):
                label = section.heading or self._fallback_label(index)
                position = fan_position(anchor, index, len(sections), SECTION_SPACING)
                child_id = self._spawn(node_id, position, {
                    "content": section.body,
                    "label": label,
                    "parentId": node_id,
                    "sectionLabel": label,
                })
                created.append(child_id)

                if deep and section.body:
                    created.extend(self._paragraph_pass(section.body, child_id, position))
        else:
            created.extend(self._paragraph_pass(content, node_id, anchor))

        self.store.push_history()
        self.store.stop_editing(node_id)
        logger.info("Decomposed %s into %d node(s) (%s)", node_id, len(created),
                    "deep" if deep else "shallow")
        return created

    def _paragraph_pass(self, markup: str, anchor_id: str, anchor: Position) -> List[str]:
        blocks = merge_header_blocks(extract_blocks(markup))
        created = []
        for index, block in enumerate(blocks):
            created.append(self._spawn(
                anchor_id,
                fan_position(anchor, index, len(blocks), PARAGRAPH_SPACING),
                {
                    "content": block,
                    "label": self._fallback_label(index),
                    "parentId": anchor_id,
                    INITIAL_STYLE_KEY: dict(PARAGRAPH_CARD_STYLE),
                },
            ))
        return created

    def _spawn(self, parent_id: str, position: Position, data: dict) -> str:
        child_id = self.store.add_node(DEFAULT_NODE_TYPE, position, data, skip_history=True)
        self.store.add_edge(
            Edge(id=edge_id_for(parent_id, child_id), source=parent_id, target=child_id),
            skip_history=True,
        )
        return child_id

    def _fallback_label(self, index: int) -> str:
        return f"{label_for('node', self.store.language)} {index + 1}"


def decompose(store: GraphStore, node_id: str, deep: bool = False) -> List[str]:
    return MindMapDecomposer(store).decompose(node_id, deep=deep)
