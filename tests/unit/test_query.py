"""Tests for span reconstruction from marker fragments."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hilitetag.query import compute_span, query_all
from hilitetag.tree import ContentTree

if TYPE_CHECKING:
    import pytest

    from hilitetag.tags import TagDefinition
    from tests.conftest import Annotate


def _marker(
    marker_id: str, text: str, classes: str = "marker-start marker-end"
) -> str:
    return (
        f'<span class="marker {classes}" data-marker-id="{marker_id}" '
        f'data-tag-id="important">{text}</span>'
    )


class TestRoundTrip:
    """Materialise then query reproduces the requested offsets."""

    def test_single_annotation(
        self, sample_tree: ContentTree, annotate: Annotate
    ) -> None:
        result = annotate(sample_tree, 4, 15)
        (span,) = query_all(sample_tree.root)
        assert span.marker_id == result.marker_id
        assert span.tag_id == "important"
        assert (span.begin_index, span.end_index) == (4, 15)
        assert span.text == "quick brown"

    def test_cross_element_annotation(self, annotate: Annotate) -> None:
        tree = ContentTree("<p>The <b>quick</b> brown</p><p>fox</p>")
        annotate(tree, 4, 17)
        (span,) = query_all(tree.root)
        assert (span.begin_index, span.end_index) == (4, 17)
        assert span.text == "quick brownfo"
        assert span.text == tree.text[4:17]

    def test_nested_annotations(
        self, sample_tree: ContentTree, annotate: Annotate, question: TagDefinition
    ) -> None:
        annotate(sample_tree, 4, 19)
        annotate(sample_tree, 10, 15, question)
        spans = query_all(sample_tree.root)
        assert [(s.begin_index, s.end_index, s.tag_id) for s in spans] == [
            (4, 19, "important"),
            (10, 15, "question"),
        ]
        assert [s.text for s in spans] == ["quick brown fox", "brown"]

    def test_interleaved_annotations(
        self, sample_tree: ContentTree, annotate: Annotate, question: TagDefinition
    ) -> None:
        """Partially overlapping spans close by id, not stack order."""
        annotate(sample_tree, 4, 15)
        annotate(sample_tree, 10, 19, question)
        spans = query_all(sample_tree.root)
        assert [(s.begin_index, s.end_index) for s in spans] == [(4, 15), (10, 19)]
        assert [s.text for s in spans] == ["quick brown", "brown fox"]

    def test_sorted_by_position(
        self, sample_tree: ContentTree, annotate: Annotate
    ) -> None:
        annotate(sample_tree, 16, 19)
        annotate(sample_tree, 0, 3)
        spans = query_all(sample_tree.root)
        assert [s.begin_index for s in spans] == [0, 16]

    def test_empty_document_has_no_spans(self) -> None:
        assert query_all(ContentTree("<p>plain</p>").root) == []


class TestMalformedMarkers:
    """Orphaned flags are reported and dropped."""

    def test_orphaned_end_flag(self, caplog: pytest.LogCaptureFixture) -> None:
        tree = ContentTree(f"<p>a {_marker('m1', 'b', 'marker-end')} c</p>")
        with caplog.at_level(logging.WARNING, logger="hilitetag.query"):
            assert query_all(tree.root) == []
        assert "Orphaned end flag for marker m1" in caplog.text

    def test_orphaned_start_flag(self, caplog: pytest.LogCaptureFixture) -> None:
        tree = ContentTree(f"<p>a {_marker('m1', 'b', 'marker-start')} c</p>")
        with caplog.at_level(logging.WARNING, logger="hilitetag.query"):
            assert query_all(tree.root) == []
        assert "Orphaned start flag for marker m1" in caplog.text

    def test_empty_marker_skipped(self) -> None:
        tree = ContentTree(f"<p>a {_marker('m1', '')} c</p>")
        assert query_all(tree.root) == []

    def test_hand_written_markers_are_read(self) -> None:
        tree = ContentTree(f"<p>The {_marker('m1', 'quick')} fox</p>")
        (span,) = query_all(tree.root)
        assert (span.marker_id, span.begin_index, span.end_index) == ("m1", 4, 9)


class TestComputeSpan:
    def test_absent_marker_is_none(self, sample_tree: ContentTree) -> None:
        assert compute_span(sample_tree.root, "missing") is None

    def test_matches_query(self, sample_tree: ContentTree, annotate: Annotate) -> None:
        result = annotate(sample_tree, 4, 15)
        assert compute_span(sample_tree.root, result.marker_id) == query_all(
            sample_tree.root
        )[0]

    def test_falls_back_to_fragment_extent(self) -> None:
        """Without start/end classes the first and last fragments bound it."""
        tree = ContentTree(
            f"<p>{_marker('m1', 'ab', '')} x {_marker('m1', 'cd', '')}</p>"
        )
        span = compute_span(tree.root, "m1")
        assert span is not None
        assert (span.begin_index, span.end_index, span.text) == (0, 7, "ab x cd")
