"""Node and edge models for spatialnote."""

import uuid
from copy import deepcopy
from typing import Optional, Dict, Any
from dataclasses import dataclass, field


DEFAULT_NODE_TYPE = "glass"
DEFAULT_NODE_WIDTH = 250.0
DEFAULT_NODE_HEIGHT = 350.0
DEFAULT_EDGE_TYPE = "smoothstep"

# Transient key in add_node() data; sets the card size, never stored.
INITIAL_STYLE_KEY = "initialStyle"


def new_id() -> str:
    """Allocate a fresh node/edge id."""
    return str(uuid.uuid4())


def merge_node_data(data: Dict[str, Any], partial: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Shallow-merge ``partial`` over ``data`` and return a new dict.

    Later keys win. Nested values are replaced, not merged. Neither input
    is mutated.
    """
    merged = dict(data)
    if partial:
        merged.update(partial)
    return merged


@dataclass
class Position:
    """Canvas coordinates of a node's top-left corner."""
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Position":
        if not data:
            return cls()
        return cls(x=float(data.get("x", 0.0)), y=float(data.get("y", 0.0)))


@dataclass
class Size:
    """Card dimensions."""
    width: float = DEFAULT_NODE_WIDTH
    height: float = DEFAULT_NODE_HEIGHT

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Size":
        if not data:
            return cls()
        return cls(
            width=float(data.get("width", DEFAULT_NODE_WIDTH)),
            height=float(data.get("height", DEFAULT_NODE_HEIGHT)),
        )


@dataclass
class Node:
    """A note card on the canvas.

    ``data`` carries ``label`` and ``content`` plus the optional lineage keys
    ``parentId`` and ``sectionLabel``. Media, document and style keys are
    opaque and kept as-is.
    """
    id: str = ""
    type: str = DEFAULT_NODE_TYPE
    position: Position = field(default_factory=Position)
    size: Size = field(default_factory=Size)
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return self.data.get("label", "")

    @property
    def content(self) -> str:
        return self.data.get("content") or ""

    @property
    def parent_id(self) -> Optional[str]:
        return self.data.get("parentId")

    @property
    def section_label(self) -> Optional[str]:
        return self.data.get("sectionLabel")

    def copy(self) -> "Node":
        return deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "position": self.position.to_dict(),
            "size": self.size.to_dict(),
            "data": deepcopy(self.data),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        return cls(
            id=data["id"],
            type=data.get("type") or DEFAULT_NODE_TYPE,
            position=Position.from_dict(data.get("position")),
            size=Size.from_dict(data.get("size")),
            data=deepcopy(data.get("data") or {}),
        )


@dataclass
class Edge:
    """A directed link between two nodes."""
    id: str = ""
    source: str = ""
    target: str = ""
    type: str = DEFAULT_EDGE_TYPE
    animated: bool = True
    extra: Dict[str, Any] = field(default_factory=dict)  # Opaque visual attributes

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def copy(self) -> "Edge":
        return deepcopy(self)

    def to_dict(self) -> dict:
        result = deepcopy(self.extra)
        result.update({
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "animated": self.animated,
        })
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "Edge":
        known = {"id", "source", "target", "type", "animated"}
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            type=data.get("type") or DEFAULT_EDGE_TYPE,
            animated=bool(data.get("animated", True)),
            extra={k: deepcopy(v) for k, v in data.items() if k not in known},
        )
