"""Resolve a pointer click among spatially overlapping markers.

The host supplies the rendered bounding boxes of marker fragments (the
engine does no layout).  Among the boxes containing the point, a box that
is the *only* one containing it wins; otherwise the smallest box wins,
favouring the innermost annotation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned bounding box in client coordinates (edges inclusive)."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def area(self) -> float:
        return max(0.0, self.right - self.left) * max(0.0, self.bottom - self.top)

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


@dataclass(frozen=True, slots=True)
class MarkerBox:
    """The rendered bounds of one marker fragment."""

    marker_id: str
    rect: Rect


def resolve_click(x: float, y: float, boxes: Iterable[MarkerBox]) -> str | None:
    """Return the marker id the user most likely clicked, or None.

    Hits are grouped by marker id first, so fragments of one marker never
    compete; only distinct markers go through the smallest-area rule.
    """
    hits = [box for box in boxes if box.rect.contains(x, y)]
    if not hits:
        logger.debug("No annotation at (%s, %s)", x, y)
        return None
    # Point is uniquely inside one marker (its fragments never compete)
    if len({box.marker_id for box in hits}) == 1:
        return hits[0].marker_id

    smallest = min(hits, key=lambda box: box.rect.area)
    logger.debug(
        "Click at (%s, %s) hit %d overlapping markers; chose %s",
        x,
        y,
        len(hits),
        smallest.marker_id,
    )
    return smallest.marker_id
