"""Range-to-wrapper materialisation.

Turns a selected range into marker fragments inside the content tree.  A
range that crosses element or marker boundaries touches several text runs;
each touched run is split into ``before | middle | after`` and the middle
piece is wrapped in its own ``<span class="marker">``.  All fragments share
one marker id; the first and last carry the start/end classes that bound
the annotation when spans are reconstructed.

Architecture:
    Phase 1 collects the touched runs and their run-local offsets, phase 2
    trims whitespace and picks the boundary fragments, phase 3 mutates.
    Every failure is raised before phase 3, so a failed call never leaves
    the tree partially wrapped.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING

from hilitetag.errors import (
    AlreadyAnnotatedError,
    EmptySelectionError,
    NothingToAnnotateError,
)
from hilitetag.marker_constants import (
    MARKER_CLASS,
    MARKER_END_CLASS,
    MARKER_ID_ATTR,
    MARKER_ID_LENGTH,
    MARKER_START_CLASS,
    MARKER_TAG,
    TAG_ID_ATTR,
)
from hilitetag.tree import TextRun, closest_marker, collect_text_runs

if TYPE_CHECKING:
    from selectolax.lexbor import LexborNode

    from hilitetag.tags import TagDefinition
    from hilitetag.tree import ContentTree, TextRange

logger = logging.getLogger(__name__)

# Containers whose direct children cannot be inline elements.  Whitespace
# runs inside them are indentation between rows/items and are never wrapped.
_NO_INLINE_PARENTS = frozenset(
    ("table", "thead", "tbody", "tfoot", "tr", "colgroup", "ul", "ol", "dl")
)


@dataclass(frozen=True, slots=True)
class MarkerResult:
    """Outcome of a successful materialisation."""

    marker_id: str
    text: str


@dataclass(slots=True)
class _Segment:
    """The touched part ``[start, end)`` of one text run."""

    run_index: int
    node: LexborNode
    start: int
    end: int

    @property
    def text(self) -> str:
        return (self.node.text_content or "")[self.start : self.end]


def new_marker_id() -> str:
    """Mint a fresh URL-safe marker id."""
    return secrets.token_urlsafe(MARKER_ID_LENGTH)[:MARKER_ID_LENGTH]


def _run_index(runs: list[TextRun], node: LexborNode) -> int | None:
    for i, run in enumerate(runs):
        if run.node.mem_id == node.mem_id:
            return i
    return None


def _collect_segments(
    root: LexborNode,
    runs: list[TextRun],
    text_range: TextRange,
    allow_overlap: bool,
) -> tuple[list[_Segment], str]:
    """Phase 1: touched segments plus the full selected text.

    Runs already inside a marker are left out when overlap is disabled; the
    selected text still includes them.
    """
    first = _run_index(runs, text_range.start.node)
    last = _run_index(runs, text_range.end.node)
    if first is None or last is None or first > last:
        msg = "Selected text is outside the managed content"
        raise EmptySelectionError(msg)

    segments: list[_Segment] = []
    selected: list[str] = []
    for i in range(first, last + 1):
        run = runs[i]
        start = text_range.start.offset if i == first else 0
        end = text_range.end.offset if i == last else run.end - run.start
        if start >= end:
            continue
        selected.append(run.text[start:end])
        if not allow_overlap and closest_marker(run.node, root) is not None:
            continue
        segments.append(_Segment(i, run.node, start, end))

    return segments, "".join(selected)


def _may_wrap_whitespace(node: LexborNode) -> bool:
    parent = node.parent
    return parent is not None and parent.tag not in _NO_INLINE_PARENTS


def _materialized_text(runs: list[TextRun], first: _Segment, last: _Segment) -> str:
    """Document text from the first fragment's start to the last one's end."""
    if first.run_index == last.run_index:
        return first.text
    parts = [first.text]
    parts.extend(runs[i].text for i in range(first.run_index + 1, last.run_index))
    parts.append(last.text)
    return "".join(parts)


def _create_marker(
    tree: ContentTree,
    text: str,
    marker_id: str,
    tag: TagDefinition,
    *,
    is_start: bool,
    is_end: bool,
) -> LexborNode:
    classes = [MARKER_CLASS]
    if is_start:
        classes.append(MARKER_START_CLASS)
    if is_end:
        classes.append(MARKER_END_CLASS)

    span = tree.create_element(MARKER_TAG)
    span.attrs["class"] = " ".join(classes)
    span.attrs[MARKER_ID_ATTR] = marker_id
    span.attrs[TAG_ID_ATTR] = tag.id
    span.attrs["style"] = tag.css()
    span.insert_child(text)
    return span


def _wrap_segment(segment: _Segment, marker: LexborNode) -> None:
    """Replace the run with ``before``, the marker and ``after``."""
    node = segment.node
    text = node.text_content or ""
    before = text[: segment.start]
    after = text[segment.end :]
    if before:
        node.insert_before(before)
    node.insert_before(marker)
    if after:
        node.insert_before(after)
    node.decompose()


def materialize(
    tree: ContentTree,
    text_range: TextRange,
    allow_overlap: bool,
    tag: TagDefinition,
    marker_id: str | None = None,
) -> MarkerResult:
    """Wrap *text_range* in marker fragments for *tag*.

    Args:
        tree: The content tree to mutate.
        text_range: Range to annotate; endpoints must be text nodes of *tree*.
        allow_overlap: Also wrap runs that already sit inside a marker.
        tag: Tag whose id and colours the fragments carry.
        marker_id: Reuse this id (restore path); a fresh one is minted
            when omitted.

    Returns:
        The marker id and the materialised, whitespace-trimmed text.

    Raises:
        EmptySelectionError: Collapsed range or range outside the tree.
        NothingToAnnotateError: The range holds only whitespace.
        AlreadyAnnotatedError: Overlap is disabled and nothing is left to wrap.
    """
    if text_range.collapsed:
        msg = "Empty text selection. Select some text to highlight."
        raise EmptySelectionError(msg)

    root = tree.root
    runs = collect_text_runs(root)
    segments, selected = _collect_segments(root, runs, text_range, allow_overlap)

    if not selected.strip():
        msg = "Only whitespace selected; nothing to annotate"
        raise NothingToAnnotateError(msg)

    # Phase 2: boundary fragments are the first/last segments with content
    content_idx = [i for i, seg in enumerate(segments) if seg.text.strip()]
    if not content_idx:
        msg = "Selected text is already annotated and overlap is disabled"
        raise AlreadyAnnotatedError(msg)
    first_idx, last_idx = content_idx[0], content_idx[-1]

    first, last = segments[first_idx], segments[last_idx]
    first.start += len(first.text) - len(first.text.lstrip())
    last.end -= len(last.text) - len(last.text.rstrip())

    to_wrap = [
        (i, seg)
        for i, seg in enumerate(segments[first_idx : last_idx + 1], start=first_idx)
        if seg.text.strip() or _may_wrap_whitespace(seg.node)
    ]
    text = _materialized_text(runs, first, last)

    # Phase 3: mutate
    marker_id = marker_id or new_marker_id()
    for i, seg in to_wrap:
        marker = _create_marker(
            tree,
            seg.text,
            marker_id,
            tag,
            is_start=i == first_idx,
            is_end=i == last_idx,
        )
        _wrap_segment(seg, marker)

    logger.debug(
        "Materialised marker %s (tag %s) as %d fragment(s): %r",
        marker_id,
        tag.id,
        len(to_wrap),
        text,
    )
    return MarkerResult(marker_id=marker_id, text=text)
