"""Command-line access to a stored spatialnote canvas.

Usage:
  spatialnote verify
  spatialnote list
  spatialnote add "Reading notes" --text "Chapter 1..." --x 0 --y 0
  spatialnote decompose <node-id> --deep
  spatialnote clear --yes

Every command works on the local database (see --db and
SPATIALNOTE_DATA_DIR) and writes its changes before exiting.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from spatialnote import __version__
from spatialnote.database import Database, get_db_path
from spatialnote.decompose import MindMapDecomposer
from spatialnote.documents import text_to_markup
from spatialnote.graph import GraphStore
from spatialnote.links import LinkRegistry
from spatialnote.models import Position
from spatialnote.settings import get_links_url


def _db_path(args: argparse.Namespace) -> Path:
    return Path(args.db).expanduser() if args.db else get_db_path()


def _links_for(args: argparse.Namespace) -> LinkRegistry | None:
    """The --links-url flag wins over SPATIALNOTE_LINKS_URL."""
    url = args.links_url or get_links_url()
    return LinkRegistry(url) if url else None


def _open_store(args: argparse.Namespace) -> GraphStore:
    links = _links_for(args)
    store = GraphStore(adapter=Database(_db_path(args)), links=links)
    store.load_from_storage()
    return store


def _close_store(store: GraphStore) -> None:
    store.flush()
    store.adapter.close()


def _cmd_verify(args: argparse.Namespace) -> int:
    db_path = _db_path(args)
    if not db_path.exists():
        print(f"No DB found at {db_path}")
        return 2

    db = Database(db_path)
    try:
        ok = db.integrity_ok()
        counts = db.counts()
        node_ids = {n.id for n in db.load_nodes()}
        dangling = [e.id for e in db.load_edges() if not {e.source, e.target} <= node_ids]
    finally:
        db.close()

    print("spatialnote data verification")
    print(f"  DB: {db_path}")
    print(f"  SQLite integrity_check: {'OK' if ok else 'FAILED'}")
    print(f"  Counts: nodes={counts['nodes']} edges={counts['edges']}")
    print(f"  Dangling edges: {len(dangling)}")
    return 0 if ok and not dangling else 1


def _cmd_list(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        for node in store.nodes:
            parent = f" <- {node.parent_id}" if node.parent_id else ""
            print(f"{node.id}  {node.label!r}  ({node.position.x:g}, {node.position.y:g}){parent}")
        for edge in store.edges:
            print(f"{edge.id}: {edge.source} -> {edge.target}")
    finally:
        _close_store(store)
    return 0


def _cmd_add(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        data = {"label": args.label}
        if args.content is not None:
            data["content"] = args.content
        elif args.text is not None:
            data["content"] = text_to_markup(args.text)
        node_id = store.add_node(position=Position(args.x, args.y), data=data)
    finally:
        _close_store(store)
    print(node_id)
    return 0


def _cmd_decompose(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        if not store.has_node(args.node_id):
            print(f"No node {args.node_id}")
            return 2
        created = MindMapDecomposer(store).decompose(args.node_id, deep=args.deep)
    finally:
        _close_store(store)
    print(f"Created {len(created)} node(s)")
    return 0


def _cmd_clear(args: argparse.Namespace) -> int:
    if not args.yes:
        print("Refusing to clear the canvas without --yes")
        return 1
    store = _open_store(args)
    try:
        store.clear_canvas()
    finally:
        _close_store(store)
    print("Canvas cleared")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="spatialnote")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--db", help="Database path (default: ~/.local/share/spatialnote/spatialnote.db)")
    parser.add_argument("--links-url", help="Link registry base URL (default: $SPATIALNOTE_LINKS_URL)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_ver = sub.add_parser("verify", help="Check the local database")
    p_ver.set_defaults(func=_cmd_verify)

    p_list = sub.add_parser("list", help="Print nodes and edges")
    p_list.set_defaults(func=_cmd_list)

    p_add = sub.add_parser("add", help="Create a note")
    p_add.add_argument("label")
    body = p_add.add_mutually_exclusive_group()
    body.add_argument("--content", help="Rich-text (HTML) content")
    body.add_argument("--text", help="Plain text; blank lines start new paragraphs")
    p_add.add_argument("--x", type=float, default=0.0)
    p_add.add_argument("--y", type=float, default=0.0)
    p_add.set_defaults(func=_cmd_add)

    p_dec = sub.add_parser("decompose", help="Split a note into a mind map")
    p_dec.add_argument("node_id")
    p_dec.add_argument("--deep", action="store_true", help="Also split sections into paragraphs")
    p_dec.set_defaults(func=_cmd_decompose)

    p_clr = sub.add_parser("clear", help="Remove every node and edge")
    p_clr.add_argument("--yes", action="store_true", help="Confirm clearing the canvas")
    p_clr.set_defaults(func=_cmd_clear)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
