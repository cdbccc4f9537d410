"""Canonical node/edge store for the spatial canvas."""

import logging
from typing import Optional, List, Dict, Callable, Iterable, Any

from spatialnote.history import HistoryManager
from spatialnote.links import LinkRegistry
from spatialnote.models import (
    Node, Edge, Position, Size, DEFAULT_NODE_TYPE, INITIAL_STYLE_KEY,
    new_id, merge_node_data,
)
from spatialnote.persistence import SaveQueue
from spatialnote.settings import AppState, LANGUAGES, label_for
from spatialnote.sync import ContentSynchronizer

logger = logging.getLogger(__name__)

BRANCH_OFFSET_X = 400

# Change types that never create a history entry
MINOR_NODE_CHANGES = {"position", "select"}
MINOR_EDGE_CHANGES = {"select"}


def edge_id_for(source: str, target: str) -> str:
    return f"e-{source}-{target}"


class GraphStore:
    """Owns the node and edge collections.

    All mutations run synchronously and update memory first; the resulting
    collections are then queued for persistence. Referential mistakes
    (unknown ids) are silent no-ops.
    """

    def __init__(self, adapter=None, history: Optional[HistoryManager] = None,
                 links: Optional[LinkRegistry] = None):
        self.adapter = adapter
        self.saver = SaveQueue(adapter) if adapter is not None else None
        self.history = history or HistoryManager()
        self.links = links
        self.synchronizer = ContentSynchronizer()

        self.nodes: List[Node] = []
        self.edges: List[Edge] = []
        self.app_state = AppState()

        # Node whose content editor is open
        self.editing_node_id: Optional[str] = None

        # Callbacks
        self.on_changed: Optional[Callable[[], None]] = None

        # Baseline so the first recorded action can be undone
        self.history.push(self.nodes, self.edges)

    # ==================== Lookups ====================

    @property
    def language(self) -> str:
        return self.app_state.language

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def has_node(self, node_id: str) -> bool:
        return self.get_node(node_id) is not None

    def children_of(self, node_id: str) -> List[Node]:
        """Nodes spawned from ``node_id`` (lineage, not edges)."""
        return [n for n in self.nodes if n.parent_id == node_id]

    def edges_for(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.touches(node_id)]

    # ==================== Persistence ====================

    def _persist(self, nodes: bool = True, edges: bool = False):
        if self.saver is not None:
            if nodes:
                self.saver.save_nodes(self.nodes)
            if edges:
                self.saver.save_edges(self.edges)
        if self.on_changed:
            self.on_changed()

    def _persist_app_state(self):
        if self.saver is not None:
            self.saver.save_app_state(self.app_state.to_dict())

    def flush(self):
        """Write out everything still queued."""
        if self.saver is not None:
            self.saver.flush()

    # ==================== Node Operations ====================

    def add_node(self, node_type: str = DEFAULT_NODE_TYPE, position: Optional[Position] = None,
                 data: Optional[Dict[str, Any]] = None, skip_history: bool = False) -> str:
        """Create a node and return its id.

        ``data`` is merged over the default label. An ``initialStyle`` entry
        (``{"width", "height"}``) sets the card size and is not stored.
        """
        data = dict(data or {})
        initial_style = data.pop(INITIAL_STYLE_KEY, None)

        node = Node(
            id=new_id(),
            type=node_type,
            position=Position(position.x, position.y) if position else Position(),
            size=Size.from_dict(initial_style),
            data=merge_node_data({"label": label_for("new_node", self.language)}, data),
        )
        self.nodes = self.nodes + [node]
        self._persist()

        if not skip_history:
            self.push_history()
        return node.id

    def update_node_data(self, node_id: str, partial: Dict[str, Any], skip_history: bool = False):
        """Shallow-merge ``partial`` into a node's data.

        A ``content`` change cascades to the node's lineage children.
        """
        if not self.has_node(node_id):
            logger.debug("update_node_data: unknown node %s", node_id)
            return

        nodes = [n.copy() for n in self.nodes]
        updated = self.synchronizer.propagate(nodes, node_id, partial)
        self.nodes = nodes
        if len(updated) > 1:
            logger.debug("Content of %s synced to %d descendant(s)", node_id, len(updated) - 1)
        self._persist()

        if not skip_history:
            self.push_history()

    def move_node(self, node_id: str, position: Position):
        """Drag a node. Position changes are never recorded in history."""
        self.apply_node_changes([{
            "type": "position", "id": node_id, "position": position.to_dict(),
        }])

    def resize_node(self, node_id: str, size: Size):
        self.apply_node_changes([{
            "type": "dimensions", "id": node_id, "dimensions": size.to_dict(),
        }])

    def delete_node(self, node_id: str):
        """Remove a node and every edge touching it.

        Lineage children keep their (now dangling) ``parentId``.
        """
        if not self.has_node(node_id):
            logger.debug("delete_node: unknown node %s", node_id)
            return

        self.nodes = [n for n in self.nodes if n.id != node_id]
        self.edges = [e for e in self.edges if not e.touches(node_id)]
        if self.editing_node_id == node_id:
            self.editing_node_id = None
        self._persist(nodes=True, edges=True)
        self.push_history()

    def add_branch(self, parent_id: str) -> Optional[str]:
        """Spawn an empty child card to the right of ``parent_id``."""
        parent = self.get_node(parent_id)
        if parent is None:
            return None

        child_id = self.add_node(
            DEFAULT_NODE_TYPE,
            Position(parent.position.x + BRANCH_OFFSET_X, parent.position.y),
            {"label": label_for("new_branch", self.language), "parentId": parent_id},
            skip_history=True,
        )
        self.add_edge(Edge(id=edge_id_for(parent_id, child_id), source=parent_id, target=child_id),
                      skip_history=True)
        self.push_history()
        return child_id

    def apply_node_changes(self, changes: Iterable[dict]):
        """Apply a batch of UI node changes.

        Supported types: ``position``, ``dimensions``, ``remove``, ``add``
        and ``select``. One history entry is recorded per batch, and only
        if it holds something other than drags and selection.
        """
        changes = list(changes)
        nodes = [n.copy() for n in self.nodes]
        edges = list(self.edges)
        edges_touched = False

        for change in changes:
            kind = change.get("type")
            if kind == "add":
                added = Node.from_dict(change["item"])
                if all(n.id != added.id for n in nodes):
                    nodes.append(added)
                continue

            node = next((n for n in nodes if n.id == change.get("id")), None)
            if node is None:
                continue
            if kind == "position" and change.get("position"):
                node.position = Position.from_dict(change["position"])
            elif kind == "dimensions" and change.get("dimensions"):
                node.size = Size.from_dict(change["dimensions"])
            elif kind == "remove":
                nodes.remove(node)
                if self.editing_node_id == node.id:
                    self.editing_node_id = None
                kept = [e for e in edges if not e.touches(node.id)]
                edges_touched = edges_touched or len(kept) != len(edges)
                edges = kept

        self.nodes = nodes
        self.edges = edges
        self._persist(nodes=True, edges=edges_touched)

        if any(c.get("type") not in MINOR_NODE_CHANGES for c in changes):
            self.push_history()

    # ==================== Edge Operations ====================

    def add_edge(self, edge: Edge, skip_history: bool = False):
        """Append an edge. Edges to unknown nodes are dropped."""
        if not (self.has_node(edge.source) and self.has_node(edge.target)):
            logger.debug("add_edge: dropped %s, endpoint missing (%s -> %s)",
                         edge.id, edge.source, edge.target)
            return

        self.edges = self.edges + [edge.copy()]
        self._persist(nodes=False, edges=True)

        if not skip_history:
            self.push_history()

    def connect(self, source: str, target: str) -> Optional[str]:
        """Create a user-drawn link and return its id."""
        if not (self.has_node(source) and self.has_node(target)):
            return None
        edge = Edge(id=edge_id_for(source, target), source=source, target=target)
        self.add_edge(edge)
        return edge.id

    def delete_edge(self, edge_id: str):
        self.apply_edge_changes([{"type": "remove", "id": edge_id}])

    def apply_edge_changes(self, changes: Iterable[dict]):
        """Apply a batch of UI edge changes (``add``, ``remove``, ``select``).

        Selection-only batches are not recorded in history.
        """
        changes = list(changes)
        edges = list(self.edges)
        for change in changes:
            kind = change.get("type")
            if kind == "remove":
                edges = [e for e in edges if e.id != change.get("id")]
            elif kind == "add":
                edge = Edge.from_dict(change["item"])
                if self.has_node(edge.source) and self.has_node(edge.target):
                    edges.append(edge)

        self.edges = edges
        self._persist(nodes=False, edges=True)

        if any(c.get("type") not in MINOR_EDGE_CHANGES for c in changes):
            self.push_history()

    # ==================== History ====================

    def push_history(self):
        """Record the current collections as one history entry."""
        self.history.push(self.nodes, self.edges)

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def undo(self):
        snapshot = self.history.undo()
        if snapshot is not None:
            self._restore(snapshot)

    def redo(self):
        snapshot = self.history.redo()
        if snapshot is not None:
            self._restore(snapshot)

    def _restore(self, snapshot):
        self.nodes, self.edges = snapshot.restore()
        if self.editing_node_id and not self.has_node(self.editing_node_id):
            self.editing_node_id = None
        self._persist(nodes=True, edges=True)

    def clear_canvas(self):
        """Remove every node and edge; recorded as one history entry."""
        self.nodes = []
        self.edges = []
        self.editing_node_id = None
        self._persist(nodes=True, edges=True)
        self.push_history()
        logger.info("Canvas cleared")

    # ==================== Edit Mode ====================

    def start_editing(self, node_id: str):
        if self.has_node(node_id):
            self.editing_node_id = node_id

    def stop_editing(self, node_id: Optional[str] = None):
        if node_id is None or self.editing_node_id == node_id:
            self.editing_node_id = None

    # ==================== App State ====================

    def toggle_grid(self):
        self.app_state.grid_enabled = not self.app_state.grid_enabled
        self._persist_app_state()

    def toggle_snap(self):
        self.app_state.snap_to_grid = not self.app_state.snap_to_grid
        self._persist_app_state()

    def toggle_language(self):
        current = LANGUAGES.index(self.app_state.language)
        self.app_state.language = LANGUAGES[(current + 1) % len(LANGUAGES)]
        self._persist_app_state()

    def set_theme(self, theme: Dict[str, Any]):
        self.app_state.theme = dict(theme)
        self._persist_app_state()

    def add_custom_font(self, font: Dict[str, Any]):
        self.app_state.custom_fonts = self.app_state.custom_fonts + [dict(font)]
        self._persist_app_state()

    def add_custom_link(self, name: str, url: str) -> str:
        link = {"id": new_id(), "name": name, "url": url}
        self.app_state.custom_links = self.app_state.custom_links + [link]
        self._persist_app_state()
        self._publish_links()
        return link["id"]

    def delete_custom_link(self, link_id: str):
        self.app_state.custom_links = [
            link for link in self.app_state.custom_links if link.get("id") != link_id
        ]
        self._persist_app_state()
        self._publish_links()

    def _publish_links(self):
        if self.links is None:
            return
        links = [dict(link) for link in self.app_state.custom_links]
        if self.saver is not None:
            self.saver.run_later("links", self.links.publish, links)
        else:
            self.links.publish(links)

    # ==================== Bootstrap ====================

    def load_from_storage(self):
        """Seed the store from the adapter and the link registry.

        Empty stored collections mean "nothing to restore" and leave the
        current state alone. History restarts from the loaded state.
        """
        if self.adapter is None:
            return

        nodes = self.adapter.load_nodes()
        edges = self.adapter.load_edges()
        stored_state = self.adapter.load_app_state()
        server_links = self.links.fetch() if self.links is not None else []

        if nodes:
            self.nodes = list(nodes)
        if edges:
            self.edges = [e for e in edges if self.has_node(e.source) and self.has_node(e.target)]
            if len(self.edges) != len(edges):
                logger.warning("Dropped %d stored edge(s) with missing endpoints",
                               len(edges) - len(self.edges))

        if stored_state is not None:
            self.app_state = AppState.from_dict(stored_state)
        # The registry's list wins over the cached copy when it has one
        if server_links:
            self.app_state.custom_links = list(server_links)

        self.history.clear()
        self.push_history()
        logger.info("Loaded %d node(s), %d edge(s)", len(self.nodes), len(self.edges))
        if self.on_changed:
            self.on_changed()
