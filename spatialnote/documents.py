"""Rich-text content model.

Node content is an HTML fragment produced by the editor surface. This
module parses it into a small element tree and exposes the pure
segmentation helpers used by content synchronization and mind-map
decomposition:

- ``segment_by_headings`` splits content into heading sections. A
  section is every element sibling that follows a heading, up to the
  next heading of any level.
- ``extract_blocks`` and ``merge_header_blocks`` implement the
  paragraph-level split.

Parsing never raises. Markup the parser cannot handle is kept as one
opaque text block, which has no headings and no block elements.
"""

import re
import html
import logging
from html.parser import HTMLParser
from typing import Optional, List, Dict, Tuple, Iterator, Union
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
BLOCK_TAGS = ("p", "li") + HEADING_TAGS

VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
}

# Tags that implicitly close an open <p>
_P_CLOSERS = {
    "p", "div", "ul", "ol", "li", "blockquote", "pre", "table",
    "hr", "section", "article", "header", "footer",
} | set(HEADING_TAGS)

HEADER_MAX_LENGTH = 60
HEADER_ENDINGS = (":", "?", ")")

_TAG_RE = re.compile(r"<[^>]*>")
_DOUBLE_BREAK_RE = re.compile(r"<br\s*/?>\s*<br\s*/?>|\n\n")
_BLANK_LINE_RE = re.compile(r"\n\s*\n")


@dataclass(eq=False)
class Element:
    """An element in a parsed fragment. ``children`` mixes elements and text."""
    tag: str
    attrs: List[tuple] = field(default_factory=list)
    children: List[Union["Element", str]] = field(default_factory=list)
    parent: Optional["Element"] = field(default=None, repr=False)

    @property
    def is_heading(self) -> bool:
        return self.tag in HEADING_TAGS

    @property
    def level(self) -> int:
        """Heading level 1-6, 0 for anything else."""
        return int(self.tag[1]) if self.is_heading else 0

    @property
    def element_children(self) -> List["Element"]:
        return [c for c in self.children if isinstance(c, Element)]

    def descendants(self) -> Iterator["Element"]:
        """Yield descendant elements in document order."""
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.descendants()

    def text_content(self) -> str:
        parts = []
        for child in self.children:
            if isinstance(child, Element):
                parts.append(child.text_content())
            else:
                parts.append(child)
        return "".join(parts)

    def inner_html(self) -> str:
        parts = []
        for child in self.children:
            if isinstance(child, Element):
                parts.append(child.outer_html())
            else:
                parts.append(html.escape(child, quote=False).replace("\xa0", "&nbsp;"))
        return "".join(parts)

    def outer_html(self) -> str:
        if self.tag == "#fragment":
            return self.inner_html()
        attrs = "".join(
            f' {name}="{html.escape(value or "", quote=True)}"' for name, value in self.attrs
        )
        if self.tag in VOID_TAGS:
            return f"<{self.tag}{attrs}>"
        return f"<{self.tag}{attrs}>{self.inner_html()}</{self.tag}>"


class _FragmentBuilder(HTMLParser):
    """Builds an Element tree from an HTML fragment."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.root = Element("#fragment")
        self._stack: List[Element] = [self.root]

    @property
    def _current(self) -> Element:
        return self._stack[-1]

    def _append(self, element: Element):
        element.parent = self._current
        self._current.children.append(element)

    def handle_starttag(self, tag, attrs):
        if tag in _P_CLOSERS and self._current.tag == "p":
            self._stack.pop()
        if tag == "li" and self._current.tag == "li":
            self._stack.pop()

        element = Element(tag, list(attrs))
        self._append(element)
        if tag not in VOID_TAGS:
            self._stack.append(element)

    def handle_startendtag(self, tag, attrs):
        self._append(Element(tag, list(attrs)))

    def handle_endtag(self, tag):
        # Stray end tags are ignored; unclosed inner tags are closed here.
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                del self._stack[depth:]
                return

    def handle_data(self, data):
        children = self._current.children
        if children and isinstance(children[-1], str):
            children[-1] += data
        else:
            children.append(data)


def parse(markup: Optional[str]) -> Element:
    """Parse an HTML fragment into an element tree."""
    builder = _FragmentBuilder()
    if not markup:
        return builder.root
    try:
        builder.feed(markup)
        builder.close()
    except (AssertionError, ValueError) as exc:
        logger.debug("Unparseable content kept as one block: %s", exc)
        opaque = Element("#fragment")
        opaque.children.append(markup)
        return opaque
    return builder.root


@dataclass
class Section:
    """A heading and the markup that belongs to it."""
    heading: str
    level: int
    body: str


def _section_body(siblings: List[Element], index: int) -> str:
    parts = []
    for sibling in siblings[index + 1:]:
        if sibling.is_heading:
            break
        parts.append(sibling.outer_html())
    return "".join(parts)


def segment_by_headings(markup: Optional[str]) -> List[Section]:
    """Split content into one section per heading, in document order."""
    root = parse(markup)
    # parent id -> (element siblings, position of each sibling)
    siblings_of: Dict[int, Tuple[List[Element], Dict[int, int]]] = {}
    sections = []
    for el in root.descendants():
        if not el.is_heading:
            continue
        key = id(el.parent)
        if key not in siblings_of:
            siblings = el.parent.element_children
            siblings_of[key] = (siblings, {id(s): i for i, s in enumerate(siblings)})
        siblings, positions = siblings_of[key]
        sections.append(Section(
            heading=el.text_content().strip(),
            level=el.level,
            body=_section_body(siblings, positions[id(el)]),
        ))
    return sections


def section_map(markup: Optional[str]) -> Dict[str, str]:
    """Map heading text to section body. The first of duplicate headings wins."""
    bodies: Dict[str, str] = {}
    for section in segment_by_headings(markup):
        bodies.setdefault(section.heading, section.body)
    return bodies


def find_section(markup: Optional[str], label: str) -> Optional[str]:
    """Return the body of the first section headed ``label``, or None."""
    return section_map(markup).get(label)


def extract_blocks(markup: Optional[str]) -> List[str]:
    """Split content into paragraph-level blocks.

    Paragraphs, list items and headings are taken from the parsed tree.
    Content without any of them is split on a double line break instead.
    """
    root = parse(markup)
    blocks = [el.outer_html().strip() for el in root.descendants() if el.tag in BLOCK_TAGS]
    blocks = [b for b in blocks if b]
    if blocks:
        return blocks

    pieces = _DOUBLE_BREAK_RE.split(markup or "")
    return [p.strip() for p in pieces if p.strip()]


def strip_tags(markup: str) -> str:
    return _TAG_RE.sub("", markup).strip()


def is_header_like(block: str) -> bool:
    """Short blocks ending in ':', '?' or ')' read like a lead-in."""
    text = strip_tags(block)
    return len(text) < HEADER_MAX_LENGTH and text.endswith(HEADER_ENDINGS)


def merge_header_blocks(blocks: List[str]) -> List[str]:
    """Fold each header-like block into the block that follows it."""
    merged = []
    i = 0
    while i < len(blocks):
        current = blocks[i]
        if is_header_like(current) and i < len(blocks) - 1:
            merged.append(current + "<br>" + blocks[i + 1])
            i += 2
        else:
            merged.append(current)
            i += 1
    return merged


def text_to_markup(text: str) -> str:
    """Turn plain text into paragraphs; single newlines become <br>."""
    paragraphs = _BLANK_LINE_RE.split(text.strip())
    return "".join(
        "<p>" + html.escape(para, quote=False).replace("\n", "<br>") + "</p>"
        for para in paragraphs
        if para
    )
