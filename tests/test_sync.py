"""
Content Synchronization Tests
=============================

Parent edits cascading to nodes spawned from them.
"""

import pytest

from spatialnote.models import Node
from spatialnote.sync import ContentSynchronizer

PARENT_CONTENT = "<h1>Intro</h1><p>one</p><h2>Next</h2><p>two</p>"


@pytest.fixture
def lineage(memory_store):
    """Parent with a section child, a mirror child and a grandchild."""
    parent = memory_store.add_node(data={"content": PARENT_CONTENT})
    section = memory_store.add_node(data={
        "content": "<p>one</p>", "parentId": parent, "sectionLabel": "Intro",
    })
    mirror = memory_store.add_node(data={"content": PARENT_CONTENT, "parentId": parent})
    grandchild = memory_store.add_node(data={"content": "<p>one</p>", "parentId": section})
    return parent, section, mirror, grandchild


@pytest.mark.unit
class TestContentSynchronizer:

    def test_cycle_terminates_and_visits_each_node_once(self):
        a = Node(id="a", data={"content": "old", "parentId": "b"})
        b = Node(id="b", data={"content": "old", "parentId": "a"})
        nodes = [a, b]

        updated = ContentSynchronizer().propagate(nodes, "a", {"content": "new"})

        assert updated == ["a", "b"]
        assert a.content == "new"
        assert b.content == "new"

    def test_self_parent_terminates(self):
        node = Node(id="a", data={"content": "old", "parentId": "a"})
        updated = ContentSynchronizer().propagate([node], "a", {"content": "new"})
        assert updated == ["a"]

    def test_unknown_node(self):
        node = Node(id="a", data={"content": "old"})
        assert ContentSynchronizer().propagate([node], "zzz", {"content": "new"}) == []
        assert node.content == "old"

    def test_non_content_change_does_not_cascade(self):
        parent = Node(id="p", data={"label": "P", "content": "x"})
        child = Node(id="c", data={"label": "C", "content": "y", "parentId": "p"})
        updated = ContentSynchronizer().propagate([parent, child], "p", {"label": "Renamed"})
        assert updated == ["p"]
        assert child.content == "y"

    def test_unchanged_child_is_not_visited(self):
        parent = Node(id="p", data={"content": "old"})
        child = Node(id="c", data={"content": "new", "parentId": "p"})
        updated = ContentSynchronizer().propagate([parent, child], "p", {"content": "new"})
        assert updated == ["p"]


@pytest.mark.integration
class TestStoreSync:

    def test_section_child_gets_its_section(self, memory_store, lineage):
        parent, section, _, _ = lineage
        memory_store.update_node_data(parent, {
            "content": "<h1>Intro</h1><p>uno</p><h2>Next</h2><p>two</p>",
        })
        assert memory_store.get_node(section).content == "<p>uno</p>"

    def test_mirror_child_gets_full_content(self, memory_store, lineage):
        parent, _, mirror, _ = lineage
        new_content = "<h1>Intro</h1><p>uno</p>"
        memory_store.update_node_data(parent, {"content": new_content})
        assert memory_store.get_node(mirror).content == new_content

    def test_cascade_reaches_grandchildren(self, memory_store, lineage):
        parent, _, _, grandchild = lineage
        memory_store.update_node_data(parent, {
            "content": "<h1>Intro</h1><p>uno</p><h2>Next</h2><p>two</p>",
        })
        assert memory_store.get_node(grandchild).content == "<p>uno</p>"

    def test_missing_section_leaves_child_untouched(self, memory_store, lineage):
        parent, section, mirror, grandchild = lineage
        memory_store.update_node_data(parent, {"content": "<h1>Renamed</h1><p>uno</p>"})

        assert memory_store.get_node(section).content == "<p>one</p>"
        assert memory_store.get_node(grandchild).content == "<p>one</p>"
        assert memory_store.get_node(mirror).content == "<h1>Renamed</h1><p>uno</p>"

    def test_sync_is_one_history_entry(self, memory_store, lineage):
        parent, section, _, _ = lineage
        entries = len(memory_store.history)
        memory_store.update_node_data(parent, {
            "content": "<h1>Intro</h1><p>uno</p><h2>Next</h2><p>two</p>",
        })
        assert len(memory_store.history) == entries + 1

        memory_store.undo()
        assert memory_store.get_node(section).content == "<p>one</p>"

    def test_cyclic_lineage_through_store(self, memory_store):
        a = memory_store.add_node(data={"content": "old"})
        b = memory_store.add_node(data={"content": "old", "parentId": a})
        memory_store.update_node_data(a, {"parentId": b})

        memory_store.update_node_data(a, {"content": "new"})

        assert memory_store.get_node(a).content == "new"
        assert memory_store.get_node(b).content == "new"

    def test_parent_content_is_parsed_once_per_edit(self, memory_store, monkeypatch):
        from spatialnote import documents
        from spatialnote.decompose import MindMapDecomposer

        chapters = [f"Chapter {i}" for i in range(40)]
        src = memory_store.add_node(data={
            "content": "".join(f"<h2>{c}</h2><p>draft</p>" for c in chapters),
        })
        children = MindMapDecomposer(memory_store).decompose(src)

        parses = []
        real_parse = documents.parse

        def counting_parse(markup):
            parses.append(markup)
            return real_parse(markup)

        monkeypatch.setattr(documents, "parse", counting_parse)

        memory_store.update_node_data(src, {
            "content": "".join(f"<h2>{c}</h2><p>final</p>" for c in chapters),
        })

        assert len(parses) == 1
        assert [memory_store.get_node(c).content for c in children] == ["<p>final</p>"] * 40
