"""Selection normalisation: validation and word-boundary expansion."""

from __future__ import annotations

import logging
import re

from hilitetag.errors import EmptySelectionError

logger = logging.getLogger(__name__)

_WORD_CHAR = re.compile(r"\w")


def _is_word_char(char: str) -> bool:
    return bool(char) and _WORD_CHAR.match(char) is not None


def expand_to_word_boundaries(text: str, start: int, end: int) -> tuple[int, int]:
    """Grow ``[start, end)`` outward to the nearest non-word characters.

    An endpoint only moves when the character just inside the selection at
    that endpoint is itself a word character, so a selection that starts or
    ends exactly on a space keeps that endpoint.  Whitespace-only selections
    come back unchanged.

    >>> expand_to_word_boundaries("a testing b", 4, 7)
    (2, 9)
    """
    if not text[start:end].strip():
        return start, end

    if _is_word_char(text[start]):
        while start > 0 and _is_word_char(text[start - 1]):
            start -= 1

    if _is_word_char(text[end - 1]):
        while end < len(text) and _is_word_char(text[end]):
            end += 1

    return start, end


def normalize_selection(
    text: str,
    start: int,
    end: int,
    *,
    word_boundaries: bool = False,
) -> tuple[int, int]:
    """Validate a selection over *text* and optionally word-align it.

    Raises:
        EmptySelectionError: The selection is collapsed, inverted or lies
            outside the document.
    """
    if start == end:
        msg = "Empty text selection. Select some text to highlight."
        raise EmptySelectionError(msg)
    if start > end or start < 0 or end > len(text):
        msg = (
            f"Selection [{start}, {end}) is outside the document "
            f"(length {len(text)})"
        )
        raise EmptySelectionError(msg)

    if word_boundaries:
        expanded = expand_to_word_boundaries(text, start, end)
        if expanded != (start, end):
            logger.debug(
                "Expanded selection [%d, %d) to word boundaries [%d, %d)",
                start,
                end,
                *expanded,
            )
        start, end = expanded
    return start, end
