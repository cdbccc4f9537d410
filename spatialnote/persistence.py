"""Deferred, best-effort persistence.

Writes are queued as GLib idle callbacks so a mutation returns before
anything touches the disk. Each job carries its own serialized payload,
taken when the job is submitted. A failing write is logged and dropped;
the in-memory graph stays authoritative and nothing is retried.
"""

import logging
from typing import Any, Callable, List

from gi.repository import GLib

from spatialnote.models import Node, Edge

logger = logging.getLogger(__name__)


class SaveQueue:
    """Runs adapter writes on the GLib main loop."""

    def __init__(self, adapter):
        self.adapter = adapter
        self._pending = 0

    @property
    def pending(self) -> int:
        return self._pending

    def _submit(self, name: str, func: Callable[[Any], None], payload: Any):
        self._pending += 1
        GLib.idle_add(self._run, name, func, payload)

    def _run(self, name: str, func: Callable[[Any], None], payload: Any) -> bool:
        self._pending -= 1
        try:
            func(payload)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Persistence write '%s' failed; in-memory state kept", name)
        return GLib.SOURCE_REMOVE

    def save_nodes(self, nodes: List[Node]):
        self._submit("nodes", self.adapter.save_nodes, [n.to_dict() for n in nodes])

    def save_edges(self, edges: List[Edge]):
        self._submit("edges", self.adapter.save_edges, [e.to_dict() for e in edges])

    def save_app_state(self, state: dict):
        self._submit("app_state", self.adapter.save_app_state, dict(state))

    def run_later(self, name: str, func: Callable[[Any], None], payload: Any):
        """Queue any other fire-and-forget side effect."""
        self._submit(name, func, payload)

    def flush(self):
        """Run every queued write now."""
        context = GLib.MainContext.default()
        while self._pending and context.iteration(False):
            pass
