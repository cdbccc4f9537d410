"""Undo/Redo history for spatialnote."""

import logging
from typing import Optional, List, Callable, Tuple
from dataclasses import dataclass
from copy import deepcopy

from spatialnote.models import Node, Edge

logger = logging.getLogger(__name__)

MAX_HISTORY = 50


@dataclass(frozen=True)
class Snapshot:
    """Full copy of the node/edge collections at one point in time."""
    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...]

    @classmethod
    def capture(cls, nodes: List[Node], edges: List[Edge]) -> "Snapshot":
        return cls(nodes=tuple(deepcopy(nodes)), edges=tuple(deepcopy(edges)))

    def restore(self) -> Tuple[List[Node], List[Edge]]:
        """Return fresh copies suitable for becoming live state."""
        return deepcopy(list(self.nodes)), deepcopy(list(self.edges))


class HistoryManager:
    """A single linear log of snapshots with a cursor.

    ``cursor`` is -1 until the first push. Pushing after an undo discards
    everything past the cursor. When the log is full the oldest entry is
    dropped and the cursor stays on the newest one.
    """

    def __init__(self, max_entries: int = MAX_HISTORY):
        self.max_entries = max_entries
        self._log: List[Snapshot] = []
        self._cursor = -1

        # Callbacks
        self.on_state_changed: Optional[Callable[[], None]] = None

    def __len__(self) -> int:
        return len(self._log)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        """Check if redo is available."""
        return self._cursor < len(self._log) - 1

    @property
    def current(self) -> Optional[Snapshot]:
        if self._cursor < 0:
            return None
        return self._log[self._cursor]

    def push(self, nodes: List[Node], edges: List[Edge]):
        """Record a snapshot of the given collections."""
        if self._cursor < len(self._log) - 1:
            del self._log[self._cursor + 1:]

        self._log.append(Snapshot.capture(nodes, edges))
        if len(self._log) > self.max_entries:
            self._log.pop(0)
        else:
            self._cursor += 1

        self._notify_changed()

    def undo(self) -> Optional[Snapshot]:
        """Step back one entry and return the snapshot to restore."""
        if self._cursor <= 0:
            return None

        self._cursor -= 1
        self._notify_changed()
        return self._log[self._cursor]

    def redo(self) -> Optional[Snapshot]:
        """Step forward one entry and return the snapshot to restore."""
        if self._cursor >= len(self._log) - 1:
            return None

        self._cursor += 1
        self._notify_changed()
        return self._log[self._cursor]

    def clear(self):
        """Clear all history."""
        self._log.clear()
        self._cursor = -1
        self._notify_changed()

    def _notify_changed(self):
        """Notify that undo/redo state changed."""
        logger.debug("history: %d entries, cursor at %d", len(self._log), self._cursor)
        if self.on_state_changed:
            self.on_state_changed()
