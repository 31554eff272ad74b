"""Tag definitions and the registry annotations look them up in.

A tag is a reusable style/category.  Annotations reference tags by id only;
the registry is the single point where an id is turned back into colours.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from hilitetag.errors import UnknownTagError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TagDefinition:
    """Display metadata for an annotation tag.

    Attributes:
        id: Unique tag identifier stored in every span that uses the tag.
        color: Primary background colour (e.g. "#ffeb3b").
        selected_color: Background used while a marker of this tag is selected.
        hover_color: Background used while hovered (rendered by the host).
        style: Extra CSS properties applied to every fragment.
        name: Human-readable name; legacy documents look tags up by it.
    """

    id: str
    color: str
    selected_color: str | None = None
    hover_color: str | None = None
    style: Mapping[str, str] = field(default_factory=dict)
    name: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> TagDefinition:
        """Build from a JSON record using either camelCase or snake_case keys."""
        return cls(
            id=str(record.get("id") or ""),
            color=str(record.get("color") or ""),
            selected_color=record.get("selectedColor", record.get("selected_color")),
            hover_color=record.get("hoverColor", record.get("hover_color")),
            style=dict(record.get("style") or {}),
            name=record.get("name"),
        )

    def css(self, *, selected: bool = False) -> str:
        """Inline style for a fragment of this tag."""
        background = self.selected_color if selected and self.selected_color else None
        props = {"background-color": background or self.color, **self.style}
        return "; ".join(f"{key}: {value}" for key, value in props.items()) + ";"


class TagRegistry:
    """Tags available to a document, looked up by id.

    Malformed definitions are reported, not rejected: a missing colour or a
    duplicate id logs a warning and the first definition of an id wins.
    """

    def __init__(self, tags: Iterable[TagDefinition] | None = None) -> None:
        self._tags: dict[str, TagDefinition] = {}
        if tags is None or isinstance(tags, (str, bytes, Mapping)):
            logger.warning(
                "TagRegistry expected an iterable of TagDefinition, received %s",
                type(tags).__name__,
            )
            return

        tags = list(tags)
        if not tags:
            logger.warning("TagRegistry initialised with an empty list of tags")

        for tag in tags:
            if not tag.id:
                logger.warning("Tag definition missing required 'id': %r", tag)
                continue
            if not tag.color:
                logger.warning("Tag definition missing required 'color': %r", tag)
            if not tag.selected_color:
                logger.warning(
                    "Tag definition missing required 'selected_color': %r", tag
                )
            if tag.id in self._tags:
                logger.warning(
                    "Duplicate tag id %r found. Tag ids must be unique.", tag.id
                )
                continue
            self._tags[tag.id] = tag

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> TagRegistry:
        return cls(TagDefinition.from_record(record) for record in records)

    def with_tag(self, tag: TagDefinition) -> TagRegistry:
        """A copy that also resolves *tag*; existing ids keep their definition."""
        copy = TagRegistry.__new__(TagRegistry)
        copy._tags = dict(self._tags)
        copy._tags.setdefault(tag.id, tag)
        return copy

    def get(self, tag_id: str) -> TagDefinition | None:
        return self._tags.get(tag_id)

    def get_by_name(self, name: str) -> TagDefinition | None:
        """Legacy lookup by display name (case-insensitive)."""
        wanted = name.casefold()
        for tag in self._tags.values():
            if tag.name is not None and tag.name.casefold() == wanted:
                return tag
        return None

    def require(self, tag_id: str) -> TagDefinition:
        tag = self.get(tag_id)
        if tag is None:
            raise UnknownTagError(tag_id)
        return tag

    def all(self) -> list[TagDefinition]:
        return list(self._tags.values())

    def __contains__(self, tag_id: object) -> bool:
        return tag_id in self._tags

    def __iter__(self) -> Iterator[TagDefinition]:
        return iter(self._tags.values())

    def __len__(self) -> int:
        return len(self._tags)
