"""Imperative handle over one annotated document.

``HiLiteContent`` is what a host embeds: it owns the content tree, tracks
the live selection and the currently selected marker, and exposes the
annotate/remove/update/query/restore operations.  Engine functions raise
``HiliteError``; the handle logs those failures and returns None (or an
empty report) so an invalid gesture never propagates into the host.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from hilitetag.click import MarkerBox, resolve_click
from hilitetag.config import AnnotatorConfig, get_settings
from hilitetag.errors import EmptySelectionError, HiliteError
from hilitetag.materialize import materialize
from hilitetag.models import dump_spans
from hilitetag.mutate import remove_marker, update_marker_tag
from hilitetag.query import compute_span, query_all
from hilitetag.restore import RestoreReport, restore_spans
from hilitetag.selection import normalize_selection
from hilitetag.tags import TagDefinition, TagRegistry
from hilitetag.tree import (
    ContentTree,
    all_markers,
    collect_text_runs,
    marker_id_of,
    range_from_offsets,
    tag_id_of,
)

if TYPE_CHECKING:
    from hilitetag.models import HiLiteData

logger = logging.getLogger(__name__)

MarkerSelectCallback = Callable[[str | None], None]


class HiLiteContent:
    """Annotate an HTML document and keep its markers in sync.

    Args:
        html: The document to annotate.  Existing markers are kept.
        tags: Registry used to resolve tag ids.
        default_tag: Tag used by auto-tagging and by ``materialize_selection``
            without an explicit tag.  Falls back to the registry entry named
            by ``config.default_tag_id``.
        config: Behaviour toggles; defaults to ``get_settings().annotator``.
        on_marker_select: Called with the clicked marker id (or None).
    """

    def __init__(
        self,
        html: str,
        tags: TagRegistry,
        *,
        default_tag: TagDefinition | None = None,
        config: AnnotatorConfig | None = None,
        on_marker_select: MarkerSelectCallback | None = None,
    ) -> None:
        self._tree = ContentTree(html)
        self._config = config if config is not None else get_settings().annotator
        self._on_marker_select = on_marker_select

        if default_tag is None and self._config.default_tag_id:
            default_tag = tags.get(self._config.default_tag_id)
            if default_tag is None:
                logger.warning(
                    "Default tag %r not found in registry",
                    self._config.default_tag_id,
                )
        # Spans of the default tag must resolve even if the host left it out
        self._tags = tags.with_tag(default_tag) if default_tag else tags
        self._default_tag = default_tag

        self._selection: tuple[int, int] | None = None
        self._selected_marker: str | None = None

        if self._config.auto_tag and self._default_tag is None:
            logger.warning("autoTag is enabled but no default tag provided")

    # -- state ---------------------------------------------------------------

    @property
    def tree(self) -> ContentTree:
        return self._tree

    @property
    def html(self) -> str:
        return self._tree.html

    @property
    def text(self) -> str:
        return self._tree.text

    @property
    def selection(self) -> tuple[int, int] | None:
        return self._selection

    @property
    def selected_marker(self) -> str | None:
        return self._selected_marker

    def select(self, start: int, end: int) -> None:
        """Record the host's live selection as absolute text offsets."""
        self._selection = (start, end)

    def clear_selection(self) -> None:
        self._selection = None

    # -- annotate ------------------------------------------------------------

    def _resolve_tag(self, tag: TagDefinition | str) -> TagDefinition:
        if isinstance(tag, TagDefinition):
            return tag
        return self._tags.require(tag)

    def materialize_selection(
        self, tag: TagDefinition | str | None = None
    ) -> HiLiteData | None:
        """Annotate the current selection and return the new span.

        Returns None (after logging why) when there is no tag, no selection,
        or the selection cannot be annotated.
        """
        if tag is None:
            tag = self._default_tag
        if tag is None:
            logger.warning(
                "No tag provided. Provide a tag or configure a default tag "
                "when using autoTag."
            )
            return None
        if self._selection is None:
            logger.warning("No text selected for highlighting")
            return None

        try:
            resolved = self._resolve_tag(tag)
            start, end = normalize_selection(
                self._tree.text,
                *self._selection,
                word_boundaries=self._config.auto_word_boundaries,
            )
            runs = collect_text_runs(self._tree.root)
            text_range = range_from_offsets(runs, start, end)
            if text_range is None:
                msg = "Selected text is outside the managed content"
                raise EmptySelectionError(msg)
            result = materialize(
                self._tree, text_range, self._config.overlap_tag, resolved
            )
        except HiliteError as exc:
            logger.warning("%s", exc)
            return None

        self._selection = None
        return compute_span(self._tree.root, result.marker_id)

    def release_selection(self) -> HiLiteData | None:
        """Pointer-up hook: auto-tag the selection when enabled."""
        if not self._config.auto_tag:
            return None
        if self._default_tag is None:
            logger.warning("autoTag is enabled but no default tag provided")
            return None
        return self.materialize_selection(self._default_tag)

    # -- mutate --------------------------------------------------------------

    def remove(self, marker_id: str) -> HiLiteData | None:
        try:
            span = remove_marker(self._tree, marker_id)
        except HiliteError as exc:
            logger.warning("%s", exc)
            return None
        if self._selected_marker == marker_id:
            self._selected_marker = None
        return span

    def update(self, marker_id: str, tag: TagDefinition | str) -> HiLiteData | None:
        try:
            span = update_marker_tag(self._tree, marker_id, self._resolve_tag(tag))
        except HiliteError as exc:
            logger.warning("%s", exc)
            return None
        if self._selected_marker == marker_id:
            self._repaint()
        return span

    # -- query / persist -----------------------------------------------------

    def query_all(self) -> list[HiLiteData]:
        spans = query_all(self._tree.root)
        if not spans:
            logger.warning("No markers found in the content")
        return spans

    def restore(
        self, spans: list[HiLiteData] | list[dict[str, Any]] | Any
    ) -> RestoreReport:
        report = restore_spans(self._tree, spans, self._tags)
        if self._selected_marker is not None:
            self._repaint()
        return report

    def dumps(self) -> str:
        return dump_spans(query_all(self._tree.root))

    def loads(self, payload: str | bytes) -> RestoreReport:
        """Restore from the JSON wire format."""
        try:
            items = json.loads(payload)
        except json.JSONDecodeError as exc:
            logger.warning("Could not decode annotation payload: %s", exc)
            return RestoreReport()
        return self.restore(items)

    # -- pointer interaction -------------------------------------------------

    def click(self, x: float, y: float, boxes: Iterable[MarkerBox]) -> str | None:
        """Resolve a click against rendered fragment boxes and notify."""
        marker_id = resolve_click(x, y, boxes)
        if self._on_marker_select is not None:
            self._on_marker_select(marker_id)
        return marker_id

    def set_selected_marker(self, marker_id: str | None) -> None:
        """Paint *marker_id* with its tag's selected colour, others normally."""
        self._selected_marker = marker_id
        self._repaint()

    def _repaint(self) -> None:
        for fragment in all_markers(self._tree.root):
            tag = self._tags.get(tag_id_of(fragment))
            if tag is None:
                continue
            selected = (
                self._selected_marker is not None
                and marker_id_of(fragment) == self._selected_marker
            )
            fragment.attrs["style"] = tag.css(selected=selected)
