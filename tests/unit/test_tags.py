"""Tests for tag definitions and the tag registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from hilitetag.errors import UnknownTagError
from hilitetag.tags import TagDefinition, TagRegistry

if TYPE_CHECKING:
    from pytest import LogCaptureFixture


class TestTagDefinition:
    def test_css_primary_colour(self) -> None:
        tag = TagDefinition(id="t", color="#fff", selected_color="#000")
        assert tag.css() == "background-color: #fff;"

    def test_css_selected_colour(self) -> None:
        tag = TagDefinition(id="t", color="#fff", selected_color="#000")
        assert tag.css(selected=True) == "background-color: #000;"

    def test_css_selected_without_selected_colour(self) -> None:
        tag = TagDefinition(id="t", color="#fff")
        assert tag.css(selected=True) == "background-color: #fff;"

    def test_css_extra_style(self) -> None:
        tag = TagDefinition(id="t", color="#fff", style={"border-bottom": "1px solid"})
        assert tag.css() == "background-color: #fff; border-bottom: 1px solid;"

    def test_from_record_camel_case(self) -> None:
        tag = TagDefinition.from_record(
            {"id": "t", "color": "#fff", "selectedColor": "#000", "name": "Tag"}
        )
        assert tag.selected_color == "#000"
        assert tag.name == "Tag"

    def test_from_record_snake_case(self) -> None:
        tag = TagDefinition.from_record(
            {"id": "t", "color": "#fff", "hover_color": "#eee"}
        )
        assert tag.hover_color == "#eee"


class TestTagRegistry:
    """Malformed definitions are reported, not rejected."""

    def test_lookup_by_id(self, tags: TagRegistry) -> None:
        tag = tags.get("important")
        assert tag is not None
        assert tag.color == "#ffeb3b"
        assert tags.get("missing") is None

    def test_require_unknown_raises(self, tags: TagRegistry) -> None:
        with pytest.raises(UnknownTagError) as excinfo:
            tags.require("missing")
        assert excinfo.value.tag_id == "missing"

    def test_lookup_by_name_case_insensitive(self, tags: TagRegistry) -> None:
        tag = tags.get_by_name("QUESTION")
        assert tag is not None
        assert tag.id == "question"

    def test_duplicate_id_first_wins(self, caplog: LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="hilitetag.tags"):
            registry = TagRegistry(
                [
                    TagDefinition(id="t", color="#111", selected_color="#000"),
                    TagDefinition(id="t", color="#222", selected_color="#000"),
                ]
            )
        assert len(registry) == 1
        assert registry.require("t").color == "#111"
        assert "Duplicate tag id 't'" in caplog.text

    def test_missing_colours_warn(self, caplog: LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="hilitetag.tags"):
            registry = TagRegistry([TagDefinition(id="t", color="")])
        assert "t" in registry
        assert "missing required 'color'" in caplog.text
        assert "missing required 'selected_color'" in caplog.text

    def test_missing_id_skipped(self, caplog: LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="hilitetag.tags"):
            registry = TagRegistry.from_records([{"color": "#fff"}])
        assert len(registry) == 0
        assert "missing required 'id'" in caplog.text

    def test_empty_list_warns(self, caplog: LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="hilitetag.tags"):
            TagRegistry([])
        assert "empty list" in caplog.text

    def test_non_iterable_warns(self, caplog: LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="hilitetag.tags"):
            registry = TagRegistry(None)
        assert len(registry) == 0
        assert "received NoneType" in caplog.text

    def test_with_tag_adds_without_mutating(self, tags: TagRegistry) -> None:
        extra = TagDefinition(id="extra", color="#abc", selected_color="#def")
        extended = tags.with_tag(extra)
        assert "extra" in extended
        assert "extra" not in tags
        assert [t.id for t in extended] == ["important", "question", "extra"]

    def test_with_tag_keeps_existing_definition(self, tags: TagRegistry) -> None:
        clash = TagDefinition(id="important", color="#000")
        assert tags.with_tag(clash).require("important").color == "#ffeb3b"
