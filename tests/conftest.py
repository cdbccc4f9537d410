"""
Pytest Configuration and Shared Fixtures
========================================

Fixtures:
- db: a Database in a temporary directory
- store: a GraphStore persisting to ``db``; queued writes are flushed
  on teardown
- memory_store: a GraphStore without persistence
- FakeSession: stands in for ``requests.Session`` in link registry tests
"""

import os
import sys

import pytest
import requests


# Ensure the spatialnote package is importable from the repo checkout
_repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _repo_root not in sys.path:
    sys.path.insert(0, _repo_root)

from spatialnote.database import Database  # noqa: E402
from spatialnote.graph import GraphStore  # noqa: E402


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast, isolated unit tests")
    config.addinivalue_line("markers", "integration: Component interaction tests")


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "canvas.db")
    yield database
    database.close()


@pytest.fixture
def store(db):
    graph = GraphStore(adapter=db)
    graph.app_state.language = "en"
    yield graph
    graph.flush()


@pytest.fixture
def memory_store():
    graph = GraphStore()
    graph.app_state.language = "en"
    return graph


def state_of(graph):
    """Comparable dump of a store's collections."""
    return (
        [n.to_dict() for n in graph.nodes],
        [e.to_dict() for e in graph.edges],
    )


class FakeResponse:
    def __init__(self, payload=None, status=200, bad_json=False):
        self.payload = payload
        self.status_code = status
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.bad_json:
            raise ValueError("not JSON")
        return self.payload


class FakeSession:
    """Records requests and replays canned responses."""

    def __init__(self, get_response=None, post_response=None, error=None):
        self.get_response = get_response or FakeResponse([])
        self.post_response = post_response or FakeResponse({"success": True})
        self.error = error
        self.posted = []
        self.gets = 0

    def get(self, url, timeout=None):
        self.gets += 1
        if self.error:
            raise self.error
        return self.get_response

    def post(self, url, json=None, timeout=None):
        if self.error:
            raise self.error
        self.posted.append(json)
        return self.post_response
