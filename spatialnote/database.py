"""SQLite persistence adapter for spatialnote."""

import os
import sqlite3
import json
from pathlib import Path
from typing import Optional, List

from spatialnote.models import Node, Edge


def get_data_dir() -> Path:
    """Get the application data directory."""
    override = os.environ.get("SPATIALNOTE_DATA_DIR")
    data_dir = Path(override) if override else Path.home() / ".local" / "share" / "spatialnote"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_db_path() -> Path:
    """Get the database file path."""
    return get_data_dir() / "spatialnote.db"


class Database:
    """Stores the canvas as full-collection snapshots.

    Save calls replace the whole collection (clear, then write) inside one
    transaction. Rows keep each record as JSON, so opaque node data
    round-trips unchanged.
    """

    APP_STATE_KEY = "main"

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or get_db_path()
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def _init_db(self):
        """Initialize the database schema."""
        cursor = self.conn.cursor()

        cursor.executescript("""
            -- Nodes table (sort_order keeps collection order)
            CREATE TABLE IF NOT EXISTS nodes (
                id TEXT PRIMARY KEY,
                sort_order INTEGER NOT NULL,
                record JSON NOT NULL
            );

            -- Edges table
            CREATE TABLE IF NOT EXISTS edges (
                id TEXT PRIMARY KEY,
                sort_order INTEGER NOT NULL,
                source TEXT NOT NULL,
                target TEXT NOT NULL,
                record JSON NOT NULL
            );

            -- App state table
            CREATE TABLE IF NOT EXISTS app_state (
                id TEXT PRIMARY KEY,
                state JSON NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_nodes_sort ON nodes(sort_order);
            CREATE INDEX IF NOT EXISTS idx_edges_sort ON edges(sort_order);
        """)

        self.conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    # ==================== Node Operations ====================

    def save_nodes(self, nodes: List[dict]):
        """Replace the stored node collection."""
        with self.conn:
            self.conn.execute("DELETE FROM nodes")
            # Duplicate ids collapse to the last record, like a keyed store.
            self.conn.executemany(
                "INSERT OR REPLACE INTO nodes (id, sort_order, record) VALUES (?, ?, ?)",
                [(n["id"], i, json.dumps(n)) for i, n in enumerate(nodes)]
            )

    def load_nodes(self) -> List[Node]:
        """Get all stored nodes in collection order."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT record FROM nodes ORDER BY sort_order")
        return [Node.from_dict(json.loads(row["record"])) for row in cursor.fetchall()]

    # ==================== Edge Operations ====================

    def save_edges(self, edges: List[dict]):
        """Replace the stored edge collection."""
        with self.conn:
            self.conn.execute("DELETE FROM edges")
            self.conn.executemany(
                """INSERT OR REPLACE INTO edges (id, sort_order, source, target, record)
                   VALUES (?, ?, ?, ?, ?)""",
                [(e["id"], i, e["source"], e["target"], json.dumps(e)) for i, e in enumerate(edges)]
            )

    def load_edges(self) -> List[Edge]:
        """Get all stored edges in collection order."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT record FROM edges ORDER BY sort_order")
        return [Edge.from_dict(json.loads(row["record"])) for row in cursor.fetchall()]

    # ==================== App State Operations ====================

    def save_app_state(self, state: dict):
        """Store the app state record."""
        with self.conn:
            self.conn.execute(
                "INSERT OR REPLACE INTO app_state (id, state) VALUES (?, ?)",
                (self.APP_STATE_KEY, json.dumps(state))
            )

    def load_app_state(self) -> Optional[dict]:
        """Get the app state record, None if nothing was saved."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT state FROM app_state WHERE id = ?", (self.APP_STATE_KEY,))
        row = cursor.fetchone()

        if not row:
            return None

        try:
            return json.loads(row["state"])
        except json.JSONDecodeError:
            return None

    # ==================== Maintenance ====================

    def integrity_ok(self) -> bool:
        cursor = self.conn.cursor()
        cursor.execute("PRAGMA integrity_check")
        row = cursor.fetchone()
        return bool(row) and str(row[0]).lower() == "ok"

    def counts(self) -> dict:
        cursor = self.conn.cursor()
        out: dict[str, int] = {}
        for table in ("nodes", "edges", "app_state"):
            cursor.execute(f"SELECT COUNT(*) FROM {table}")
            out[table] = int(cursor.fetchone()[0])
        return out
