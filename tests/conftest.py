"""Shared pytest fixtures for hilitetag tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from hilitetag.materialize import MarkerResult, materialize
from hilitetag.tags import TagDefinition, TagRegistry
from hilitetag.tree import ContentTree, collect_text_runs, range_from_offsets

SAMPLE_HTML = "<p>The quick brown fox jumps</p>"

Annotate = Callable[..., MarkerResult]


@pytest.fixture
def tags() -> TagRegistry:
    """Two fully specified tags."""
    return TagRegistry(
        [
            TagDefinition(
                id="important",
                color="#ffeb3b",
                selected_color="#fbc02d",
                name="Important",
            ),
            TagDefinition(
                id="question",
                color="#90caf9",
                selected_color="#1e88e5",
                name="Question",
            ),
        ]
    )


@pytest.fixture
def important(tags: TagRegistry) -> TagDefinition:
    return tags.require("important")


@pytest.fixture
def question(tags: TagRegistry) -> TagDefinition:
    return tags.require("question")


@pytest.fixture
def sample_tree() -> ContentTree:
    return ContentTree(SAMPLE_HTML)


@pytest.fixture
def annotate(important: TagDefinition) -> Annotate:
    """Materialise ``[begin, end)`` of a tree, defaulting to the important tag."""

    def _annotate(
        tree: ContentTree,
        begin: int,
        end: int,
        tag: TagDefinition | None = None,
        *,
        allow_overlap: bool = True,
        marker_id: str | None = None,
    ) -> MarkerResult:
        text_range = range_from_offsets(collect_text_runs(tree.root), begin, end)
        assert text_range is not None, f"[{begin}, {end}) does not resolve"
        return materialize(
            tree, text_range, allow_overlap, tag or important, marker_id
        )

    return _annotate
