"""Remove or re-tag an existing annotation in place."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hilitetag.errors import UnknownMarkerError
from hilitetag.marker_constants import TAG_ID_ATTR
from hilitetag.query import compute_span
from hilitetag.tree import marker_fragments

if TYPE_CHECKING:
    from selectolax.lexbor import LexborNode

    from hilitetag.models import HiLiteData
    from hilitetag.tags import TagDefinition
    from hilitetag.tree import ContentTree

logger = logging.getLogger(__name__)


def _fragments_or_raise(tree: ContentTree, marker_id: str) -> list[LexborNode]:
    fragments = marker_fragments(tree.root, marker_id) if marker_id else []
    if not fragments:
        raise UnknownMarkerError(marker_id)
    return fragments


def unwrap_fragment(fragment: LexborNode) -> None:
    """Drop one wrapper fragment, keeping everything inside it.

    Children (nested markers and inline markup alike) are spliced into the
    fragment's place; callers merge the split text nodes afterwards.
    """
    fragment.unwrap()


def remove_marker(tree: ContentTree, marker_id: str) -> HiLiteData | None:
    """Remove every fragment of *marker_id* and return its former span.

    Raises:
        UnknownMarkerError: No fragment carries *marker_id*.
    """
    fragments = _fragments_or_raise(tree, marker_id)
    span = compute_span(tree.root, marker_id)

    # Outer fragments first; a nested fragment of the same marker is
    # reached again through the document-order list after its parent unwraps.
    for fragment in fragments:
        unwrap_fragment(fragment)
    tree.merge_text_nodes()

    logger.debug("Removed marker %s (%d fragment(s))", marker_id, len(fragments))
    return span


def update_marker_tag(
    tree: ContentTree,
    marker_id: str,
    tag: TagDefinition,
) -> HiLiteData | None:
    """Re-tag every fragment of *marker_id* and return the updated span.

    Raises:
        UnknownMarkerError: No fragment carries *marker_id*.
    """
    fragments = _fragments_or_raise(tree, marker_id)

    for fragment in fragments:
        fragment.attrs[TAG_ID_ATTR] = tag.id
        fragment.attrs["style"] = tag.css()

    logger.debug("Re-tagged marker %s as %s", marker_id, tag.id)
    return compute_span(tree.root, marker_id)
