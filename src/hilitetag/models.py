"""Wire format for persisted annotations.

The only persisted state is a JSON array of span records::

    [{"markerId": "V1StGXR8_Z", "tagId": "important", "text": "quick brown",
      "beginIndex": 4, "endIndex": 15}]

Field names are exact.  ``text`` is informational: restore re-derives it
from the tree rather than trusting the stored value.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)


class HiLiteData(BaseModel):
    """One annotation as offsets into the flattened document text."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    marker_id: str = Field(alias="markerId", min_length=1)
    tag_id: str = Field(alias="tagId", min_length=1)
    text: str = ""
    begin_index: int = Field(alias="beginIndex", ge=0, strict=True)
    end_index: int = Field(alias="endIndex", ge=0, strict=True)

    @model_validator(mode="after")
    def _begin_before_end(self) -> HiLiteData:
        if self.begin_index >= self.end_index:
            msg = (
                f"beginIndex ({self.begin_index}) must be less than "
                f"endIndex ({self.end_index})"
            )
            raise ValueError(msg)
        return self

    @property
    def length(self) -> int:
        return self.end_index - self.begin_index

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def dump_spans(spans: Iterable[HiLiteData]) -> str:
    """Serialise spans to the JSON wire format."""
    return json.dumps([span.to_record() for span in spans], ensure_ascii=False)


def parse_spans(items: Any) -> tuple[list[HiLiteData], int]:
    """Validate raw records, returning ``(valid_spans, skipped_count)``.

    A non-list payload is reported and yields no spans.  Invalid entries are
    logged and skipped; one bad record never rejects the batch.
    """
    if not isinstance(items, list):
        logger.warning(
            "Expected an array of HiLiteData records, received %s",
            type(items).__name__,
        )
        return [], 0

    spans: list[HiLiteData] = []
    skipped = 0
    for item in items:
        if isinstance(item, HiLiteData):
            spans.append(item)
            continue
        try:
            spans.append(HiLiteData.model_validate(item))
        except ValidationError as exc:
            skipped += 1
            logger.warning(
                "Invalid HiLiteData record skipped: %r (%d error(s))",
                item,
                exc.error_count(),
            )
    if skipped:
        logger.warning("%d invalid record(s) found and skipped", skipped)
    return spans, skipped


def load_spans(payload: str | bytes) -> list[HiLiteData]:
    """Parse the JSON wire format, skipping invalid records."""
    try:
        items = json.loads(payload)
    except json.JSONDecodeError as exc:
        logger.warning("Could not decode annotation payload: %s", exc)
        return []
    spans, _skipped = parse_spans(items)
    return spans
