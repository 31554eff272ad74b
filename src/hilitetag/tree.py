"""Content tree: ownership of the parsed document and read-side walkers.

The content tree is a selectolax (Lexbor) DOM.  Annotation offsets are
absolute indices into the *flattened text*: the concatenation, in document
order, of every text node under the managed root.  Structural elements
contribute nothing; text under script/style/noscript/template is ignored.

Every other component goes through the helpers here, so the offset rules
live in exactly one place.
"""

# Pattern: Functional Core (pure read-side functions over a mutable DOM)

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal

from selectolax.lexbor import LexborHTMLParser, LexborNode

from hilitetag.marker_constants import (
    MARKER_CLASS,
    MARKER_END_CLASS,
    MARKER_ID_ATTR,
    MARKER_START_CLASS,
    TAG_ID_ATTR,
)

logger = logging.getLogger(__name__)

# Tags whose text never reaches the reader
_STRIP_TAGS = frozenset(("script", "style", "noscript", "template"))

WalkEvent = Literal["enter", "text", "exit"]


class ContentTree:
    """Owns the parsed document that annotations are materialised into.

    The tree is the single source of truth for annotations: wrapper
    fragments live inside it and spans are recomputed from it on demand.
    Callers must not interleave mutations on the same instance.
    """

    def __init__(self, html: str) -> None:
        self._parser = LexborHTMLParser(html or "")
        root = self._parser.body or self._parser.root
        if root is None:
            msg = "Could not parse a document root from the supplied HTML"
            raise ValueError(msg)
        self._root = root

    @property
    def root(self) -> LexborNode:
        return self._root

    @property
    def html(self) -> str:
        """Serialised content of the managed root (without the body tag)."""
        return self._root.inner_html or ""

    @property
    def text(self) -> str:
        return flatten_text(self._root)

    def create_element(self, tag: str) -> LexborNode:
        return self._parser.create_node(tag)

    def merge_text_nodes(self) -> None:
        """Join adjacent text nodes left behind by splits and unwraps."""
        self._root.merge_text_nodes()


# ---------------------------------------------------------------------------
# Text runs
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class TextRun:
    """A leaf text node and its position in the flattened text.

    Attributes:
        node: The text node.
        start: Absolute offset of the node's first character.
        end: Absolute offset one past the node's last character.
    """

    node: LexborNode
    start: int
    end: int

    @property
    def text(self) -> str:
        return self.node.text_content or ""


def is_text(node: LexborNode) -> bool:
    return node.tag == "-text"


def _children(node: LexborNode) -> Iterator[LexborNode]:
    child = node.first_child
    while child is not None:
        yield child
        child = child.next


def walk(root: LexborNode) -> Iterator[tuple[WalkEvent, LexborNode]]:
    """Depth-first walk yielding enter/text/exit events below *root*.

    Elements produce an ``enter`` event before their children and an
    ``exit`` event after them; text nodes produce a single ``text`` event.
    The root itself is not reported.
    """
    for child in _children(root):
        if is_text(child):
            yield "text", child
            continue
        if not child.is_element_node or child.tag in _STRIP_TAGS:
            continue
        yield "enter", child
        yield from walk(child)
        yield "exit", child


def iter_text_nodes(root: LexborNode) -> Iterator[LexborNode]:
    for event, node in walk(root):
        if event == "text":
            yield node


def collect_text_runs(root: LexborNode) -> list[TextRun]:
    """Return every leaf text run below *root* with absolute offsets."""
    runs: list[TextRun] = []
    pos = 0
    for node in iter_text_nodes(root):
        length = len(node.text_content or "")
        runs.append(TextRun(node=node, start=pos, end=pos + length))
        pos += length
    return runs


def flatten_text(root: LexborNode) -> str:
    return "".join(node.text_content or "" for node in iter_text_nodes(root))


# ---------------------------------------------------------------------------
# Marker fragments
# ---------------------------------------------------------------------------


def _classes(node: LexborNode) -> list[str]:
    return (node.attributes.get("class") or "").split()


def is_marker(node: LexborNode) -> bool:
    """True for a wrapper fragment element."""
    if not node.is_element_node:
        return False
    attrs = node.attributes
    return MARKER_ID_ATTR in attrs and MARKER_CLASS in _classes(node)


def marker_id_of(node: LexborNode) -> str:
    return node.attributes.get(MARKER_ID_ATTR) or ""


def tag_id_of(node: LexborNode) -> str:
    return node.attributes.get(TAG_ID_ATTR) or ""


def is_marker_start(node: LexborNode) -> bool:
    return MARKER_START_CLASS in _classes(node)


def is_marker_end(node: LexborNode) -> bool:
    return MARKER_END_CLASS in _classes(node)


def closest_marker(node: LexborNode, root: LexborNode) -> LexborNode | None:
    """Return the nearest marker fragment enclosing *node* (inclusive).

    The search stops at *root*, which is never itself a marker.
    """
    current: LexborNode | None = node
    while current is not None and current.mem_id != root.mem_id:
        if is_marker(current):
            return current
        current = current.parent
    return None


def marker_fragments(root: LexborNode, marker_id: str) -> list[LexborNode]:
    """All fragments of one annotation in document order."""
    return [
        node
        for event, node in walk(root)
        if event == "enter" and is_marker(node) and marker_id_of(node) == marker_id
    ]


def all_markers(root: LexborNode) -> list[LexborNode]:
    return [node for event, node in walk(root) if event == "enter" and is_marker(node)]


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Boundary:
    """A position inside a text node (offset is run-local)."""

    node: LexborNode
    offset: int


@dataclass(slots=True)
class TextRange:
    """A contiguous selection between two text-node boundaries."""

    start: Boundary
    end: Boundary

    @property
    def collapsed(self) -> bool:
        return (
            self.start.node.mem_id == self.end.node.mem_id
            and self.start.offset >= self.end.offset
        )


def range_from_offsets(runs: list[TextRun], begin: int, end: int) -> TextRange | None:
    """Resolve absolute offsets ``[begin, end)`` to a range over *runs*.

    The start binds to the run where ``run.start <= begin < run.end`` and the
    end to the run where ``run.start < end <= run.end``, so a boundary that
    falls between two runs never yields an empty leading or trailing segment.
    Returns None when either endpoint cannot be resolved.
    """
    start: Boundary | None = None
    stop: Boundary | None = None
    for run in runs:
        if start is None and run.start <= begin < run.end:
            start = Boundary(run.node, begin - run.start)
        if stop is None and run.start < end <= run.end:
            stop = Boundary(run.node, end - run.start)
        if start is not None and stop is not None:
            return TextRange(start, stop)
    return None


def range_selecting_node(node: LexborNode) -> TextRange | None:
    """A range covering every text run inside *node*."""
    runs = collect_text_runs(node)
    if not runs:
        return None
    first, last = runs[0], runs[-1]
    return TextRange(
        Boundary(first.node, 0),
        Boundary(last.node, last.end - last.start),
    )


def _ancestors(node: LexborNode) -> list[LexborNode]:
    chain: list[LexborNode] = []
    current: LexborNode | None = node
    while current is not None:
        chain.append(current)
        current = current.parent
    return chain


def common_ancestor(a: LexborNode, b: LexborNode) -> LexborNode | None:
    """Lowest node that contains both *a* and *b* (inclusive)."""
    seen = {node.mem_id for node in _ancestors(a)}
    for node in _ancestors(b):
        if node.mem_id in seen:
            return node
    return None


def range_ancestor_element(text_range: TextRange) -> LexborNode | None:
    """The element that contains the whole range.

    Mirrors a DOM range's common ancestor, lifted to an element when the
    range sits inside a single text node.
    """
    ancestor = common_ancestor(text_range.start.node, text_range.end.node)
    if ancestor is not None and is_text(ancestor):
        return ancestor.parent
    return ancestor
