"""
Document Model Tests
====================

Parsing and segmentation of rich-text note content.
"""

import pytest

from spatialnote.documents import (
    Element, parse, segment_by_headings, section_map, find_section, extract_blocks,
    strip_tags, is_header_like, merge_header_blocks, text_to_markup,
)


@pytest.mark.unit
class TestParse:

    def test_round_trips_simple_markup(self):
        markup = '<p class="lead">Hello <strong>there</strong></p><ul><li>a</li><li>b</li></ul>'
        assert parse(markup).outer_html() == markup

    def test_void_and_self_closing_tags(self):
        assert parse("<p>a<br>b<br/>c</p>").outer_html() == "<p>a<br>b<br>c</p>"

    def test_entities_are_preserved(self):
        assert parse("<p>a &amp; b &lt; c</p>").outer_html() == "<p>a &amp; b &lt; c</p>"

    def test_non_breaking_space_is_serialized_as_entity(self):
        sections = segment_by_headings("<h1>S</h1><p>a&nbsp;b &amp; c</p>")
        assert sections[0].body == "<p>a&nbsp;b &amp; c</p>"

    def test_unclosed_paragraphs(self):
        root = parse("<p>one<p>two")
        assert [el.tag for el in root.element_children] == ["p", "p"]
        assert root.outer_html() == "<p>one</p><p>two</p>"

    def test_stray_end_tag_ignored(self):
        assert parse("<p>a</span></p>").outer_html() == "<p>a</p>"

    def test_empty_content(self):
        assert parse("").children == []
        assert parse(None).children == []

    def test_text_content(self):
        root = parse("<h1>Hello <em>world</em></h1>")
        assert root.element_children[0].text_content() == "Hello world"


@pytest.mark.unit
class TestSegmentByHeadings:

    def test_sections_in_document_order(self):
        sections = segment_by_headings(
            "<h1>One</h1><p>a</p><p>b</p><h2>Two</h2><ul><li>c</li></ul><h1>Three</h1>"
        )
        assert [(s.heading, s.level) for s in sections] == [("One", 1), ("Two", 2), ("Three", 1)]
        assert sections[0].body == "<p>a</p><p>b</p>"
        assert sections[1].body == "<ul><li>c</li></ul>"
        assert sections[2].body == ""

    def test_section_stops_at_any_heading_level(self):
        sections = segment_by_headings("<h1>A</h1><p>1</p><h3>B</h3><p>2</p>")
        assert sections[0].body == "<p>1</p>"
        assert sections[1].body == "<p>2</p>"

    def test_loose_text_between_blocks_is_skipped(self):
        sections = segment_by_headings("<h1>A</h1>loose<p>1</p>")
        assert sections[0].body == "<p>1</p>"

    def test_nested_heading_uses_its_own_siblings(self):
        sections = segment_by_headings("<div><h2>A</h2><p>x</p></div><p>outside</p>")
        assert len(sections) == 1
        assert sections[0].body == "<p>x</p>"

    def test_heading_text_is_trimmed(self):
        sections = segment_by_headings("<h2>  Spaced  </h2><p>x</p>")
        assert sections[0].heading == "Spaced"

    def test_no_headings(self):
        assert segment_by_headings("<p>just text</p>") == []
        assert segment_by_headings("") == []

    def test_find_section(self):
        markup = "<h1>Intro</h1><p>one</p><h2>Next</h2><p>two</p>"
        assert find_section(markup, "Next") == "<p>two</p>"
        assert find_section(markup, "Missing") is None

    def test_section_map_keeps_first_duplicate(self):
        markup = "<h1>Dup</h1><p>first</p><h2>Other</h2><h1>Dup</h1><p>second</p>"
        assert section_map(markup) == {"Dup": "<p>first</p>", "Other": ""}

    def test_sibling_lists_built_once_per_parent(self, monkeypatch):
        element_children = Element.element_children.fget
        calls = []

        def counting(self):
            calls.append(self.tag)
            return element_children(self)

        monkeypatch.setattr(Element, "element_children", property(counting))
        markup = "".join(
            f"<h2>Part {i}</h2>" + "<p>text</p>" * 20 for i in range(300)
        )

        sections = segment_by_headings(markup)

        assert len(sections) == 300
        assert all(s.body == "<p>text</p>" * 20 for s in sections)
        assert calls == ["#fragment"]

    def test_find_section_uses_first_match(self):
        markup = "<h1>Dup</h1><p>first</p><h1>Dup</h1><p>second</p>"
        assert find_section(markup, "Dup") == "<p>first</p>"


@pytest.mark.unit
class TestBlocks:

    def test_extracts_paragraphs_list_items_and_headings(self):
        blocks = extract_blocks("<h3>T</h3><p>a</p><ul><li>b</li><li>c</li></ul>")
        assert blocks == ["<h3>T</h3>", "<p>a</p>", "<li>b</li>", "<li>c</li>"]

    def test_falls_back_to_double_break(self):
        assert extract_blocks("first<br><br>second") == ["first", "second"]
        assert extract_blocks("first<br/> <br />second") == ["first", "second"]

    def test_falls_back_to_blank_line(self):
        assert extract_blocks("first\n\nsecond\n\n") == ["first", "second"]

    def test_empty(self):
        assert extract_blocks("") == []

    def test_strip_tags(self):
        assert strip_tags("  <p>Hi <b>there</b></p> ") == "Hi there"


@pytest.mark.unit
class TestHeaderMerge:

    def test_question_merges_with_answer(self):
        merged = merge_header_blocks(["Question:", "Answer text", "Next para"])
        assert merged == ["Question:<br>Answer text", "Next para"]

    @pytest.mark.parametrize("block", ["<p>Why?</p>", "Steps:", "Notes (draft)"])
    def test_header_like_endings(self, block):
        assert is_header_like(block)

    def test_length_threshold(self):
        assert is_header_like("a" * 58 + ":")
        assert not is_header_like("a" * 59 + ":")

    def test_plain_sentence_is_not_header_like(self):
        assert not is_header_like("A regular sentence.")

    def test_trailing_header_is_kept_alone(self):
        assert merge_header_blocks(["Body", "Dangling:"]) == ["Body", "Dangling:"]

    def test_consumed_block_is_not_merged_again(self):
        merged = merge_header_blocks(["A:", "B:", "C"])
        assert merged == ["A:<br>B:", "C"]


@pytest.mark.unit
def test_text_to_markup():
    assert text_to_markup("one\ntwo\n\n  \nthree\n") == "<p>one<br>two</p><p>three</p>"
    assert text_to_markup("a < b") == "<p>a &lt; b</p>"
    assert text_to_markup("   ") == ""
