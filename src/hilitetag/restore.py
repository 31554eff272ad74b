"""Re-apply stored annotation spans onto a content tree.

Restore is a full reset: existing markers are removed first.  Spans are
then materialised narrowest first (ties broken by position) so that an
annotation nested inside another already exists when the enclosing one is
wrapped around it.  Text runs are re-collected before every span because
each materialisation splits the runs it touches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from hilitetag.errors import HiliteError
from hilitetag.materialize import materialize
from hilitetag.models import parse_spans
from hilitetag.mutate import unwrap_fragment
from hilitetag.tree import (
    all_markers,
    closest_marker,
    collect_text_runs,
    range_ancestor_element,
    range_from_offsets,
    range_selecting_node,
)

if TYPE_CHECKING:
    from hilitetag.models import HiLiteData
    from hilitetag.tags import TagRegistry
    from hilitetag.tree import ContentTree, TextRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RestoreReport:
    """Counts from one restore call."""

    restored: int = 0
    skipped: int = 0


def clear_markers(tree: ContentTree) -> int:
    """Remove every marker fragment, keeping the text.  Returns the count."""
    markers = all_markers(tree.root)
    for fragment in markers:
        unwrap_fragment(fragment)
    tree.merge_text_nodes()
    return len(markers)


def _resolve_range(tree: ContentTree, span: HiLiteData) -> TextRange | None:
    runs = collect_text_runs(tree.root)
    text_range = range_from_offsets(runs, span.begin_index, span.end_index)
    if text_range is None:
        return None

    # A range lying wholly inside an existing fragment must wrap that whole
    # fragment, not just its text.
    ancestor = range_ancestor_element(text_range)
    if ancestor is not None:
        existing = closest_marker(ancestor, tree.root)
        if existing is not None:
            return range_selecting_node(existing)
    return text_range


def _check_text(tree_text: str, span: HiLiteData) -> None:
    actual = tree_text[span.begin_index : span.end_index]
    if span.text and span.text != actual:
        logger.warning(
            "Stored text for marker %s differs from the document: %r != %r",
            span.marker_id,
            span.text,
            actual,
        )


def restore_spans(
    tree: ContentTree,
    spans: list[HiLiteData] | list[dict[str, Any]] | Any,
    tags: TagRegistry,
) -> RestoreReport:
    """Replace the tree's annotations with *spans*.

    Invalid entries (malformed records, unknown tags, offsets beyond the
    document, unresolvable ranges) are logged, skipped and counted; they
    never abort the batch.
    """
    valid, skipped = parse_spans(spans)
    if not valid:
        if isinstance(spans, list) and not spans:
            logger.warning("restore called with an empty array")
        else:
            logger.warning("No valid annotations to restore")
        return RestoreReport(restored=0, skipped=skipped)

    removed = clear_markers(tree)
    if removed:
        logger.debug("Cleared %d existing marker fragment(s)", removed)

    tree_text = tree.text
    ordered = sorted(valid, key=lambda s: (s.length, s.begin_index))

    restored = 0
    for span in ordered:
        tag = tags.get(span.tag_id)
        if tag is None:
            logger.warning(
                "Skipping marker %s: tag %r not found", span.marker_id, span.tag_id
            )
            skipped += 1
            continue
        if span.end_index > len(tree_text):
            logger.warning(
                "Skipping marker %s: endIndex %d beyond document length %d",
                span.marker_id,
                span.end_index,
                len(tree_text),
            )
            skipped += 1
            continue
        _check_text(tree_text, span)

        text_range = _resolve_range(tree, span)
        if text_range is None:
            logger.warning(
                "Skipping marker %s: could not resolve [%d, %d)",
                span.marker_id,
                span.begin_index,
                span.end_index,
            )
            skipped += 1
            continue

        try:
            materialize(tree, text_range, True, tag, span.marker_id)
        except HiliteError as exc:
            logger.warning("Skipping marker %s: %s", span.marker_id, exc)
            skipped += 1
            continue
        restored += 1

    logger.info("Restored %d annotation(s), skipped %d", restored, skipped)
    return RestoreReport(restored=restored, skipped=skipped)
