"""Reconstruct annotation spans from the marker fragments in a tree.

A single depth-first walk keeps a running character counter (advanced on
text runs only) and a stack of currently open annotations.  Entering a
``marker-start`` fragment opens an annotation at the current counter;
leaving a ``marker-end`` fragment closes the open annotation with the same
marker id, which is not necessarily the top of the stack because
overlapping annotations interleave.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hilitetag.models import HiLiteData
from hilitetag.tree import (
    is_marker,
    is_marker_end,
    is_marker_start,
    marker_id_of,
    tag_id_of,
    walk,
)

if TYPE_CHECKING:
    from selectolax.lexbor import LexborNode

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _OpenSpan:
    marker_id: str
    tag_id: str
    begin: int
    parts: list[str] = field(default_factory=list)


def _close(open_span: _OpenSpan, end: int) -> HiLiteData | None:
    if end <= open_span.begin:
        logger.warning("Marker %s encloses no text; skipped", open_span.marker_id)
        return None
    return HiLiteData(
        marker_id=open_span.marker_id,
        tag_id=open_span.tag_id,
        text="".join(open_span.parts),
        begin_index=open_span.begin,
        end_index=end,
    )


def query_all(root: LexborNode) -> list[HiLiteData]:
    """Return every annotation in the tree, sorted by position then marker id.

    Orphaned start or end flags are reported and dropped; they never abort
    the query.
    """
    counter = 0
    stack: list[_OpenSpan] = []
    spans: list[HiLiteData] = []

    for event, node in walk(root):
        if event == "text":
            text = node.text_content or ""
            for open_span in stack:
                open_span.parts.append(text)
            counter += len(text)
            continue

        if not is_marker(node):
            continue

        marker_id = marker_id_of(node)
        if event == "enter" and is_marker_start(node):
            stack.append(_OpenSpan(marker_id, tag_id_of(node), counter))
        elif event == "exit" and is_marker_end(node):
            index = next(
                (i for i, s in enumerate(stack) if s.marker_id == marker_id), None
            )
            if index is None:
                logger.warning("Orphaned end flag for marker %s", marker_id)
                continue
            span = _close(stack.pop(index), counter)
            if span is not None:
                spans.append(span)

    for open_span in stack:
        logger.warning("Orphaned start flag for marker %s", open_span.marker_id)

    spans.sort(key=lambda s: (s.begin_index, s.end_index, s.marker_id))
    return spans


def compute_span(root: LexborNode, marker_id: str) -> HiLiteData | None:
    """Recompute one annotation's span; None when the marker is absent.

    Uses the start/end flags when present and otherwise falls back to the
    first and last fragments of the marker.
    """
    counter = 0
    chars: list[str] = []
    tag_id: str | None = None
    first_enter: int | None = None
    start_enter: int | None = None
    end_exit: int | None = None
    last_exit: int | None = None

    for event, node in walk(root):
        if event == "text":
            text = node.text_content or ""
            chars.append(text)
            counter += len(text)
            continue
        if not is_marker(node) or marker_id_of(node) != marker_id:
            continue
        if event == "enter":
            if first_enter is None:
                first_enter = counter
                tag_id = tag_id_of(node)
            if start_enter is None and is_marker_start(node):
                start_enter = counter
        else:
            last_exit = counter
            if is_marker_end(node):
                end_exit = counter

    if first_enter is None or last_exit is None or tag_id is None:
        return None

    begin = start_enter if start_enter is not None else first_enter
    end = end_exit if end_exit is not None else last_exit
    if end <= begin:
        logger.warning("Marker %s encloses no text", marker_id)
        return None

    return HiLiteData(
        marker_id=marker_id,
        tag_id=tag_id,
        text="".join(chars)[begin:end],
        begin_index=begin,
        end_index=end,
    )
