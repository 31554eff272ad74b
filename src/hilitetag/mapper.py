"""Map offsets between a markdown source and its rendered plain text.

Annotations are made on the rendered projection, but some hosts persist
positions against the raw source file.  The mapper translates in both
directions by searching for the selected text in the counterpart:

* projection -> source: exact substring first, then a word-by-word match
  that steps over formatting delimiters, link brackets and link targets.
  The result is widened over adjacent ``*``/``_``/`` ` `` delimiters so
  the returned source range includes the markup that produced the text.
* source -> projection: strip recognised markup, then search.

The search is heuristic: text that repeats verbatim can map to the wrong
occurrence.  Such results are flagged ``ambiguous`` (and logged) rather
than silently trusted.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from markdown_it import MarkdownIt

from hilitetag.errors import MappingError
from hilitetag.tree import ContentTree

logger = logging.getLogger(__name__)

# Delimiters absorbed when widening a source match
_WIDEN_DELIMITERS = frozenset("*_`")
# Inline delimiters that may interrupt a word in the source
_INLINE_DELIMITERS = frozenset("*_`~")
# Markup that may sit between two words in the source
_SKIP_BETWEEN_WORDS = frozenset("*_`~[]#>")

_MARKUP_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),  # bold **text**
    (re.compile(r"\*([^*]+)\*"), r"\1"),  # italic *text*
    (re.compile(r"__([^_]+)__"), r"\1"),  # bold __text__
    (re.compile(r"_([^_]+)_"), r"\1"),  # italic _text_
    (re.compile(r"`([^`]+)`"), r"\1"),  # inline code
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),  # links [text](url)
    (re.compile(r"^#+\s+", re.MULTILINE), ""),  # headers
    (re.compile(r"^[-*+]\s+", re.MULTILINE), ""),  # list markers
    (re.compile(r"^\d+\.\s+", re.MULTILINE), ""),  # numbered lists
)


def strip_markdown_formatting(text: str) -> str:
    """Remove bold, italic, code, link, header and list markup."""
    for pattern, replacement in _MARKUP_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def render_markdown(source: str, preset: str = "commonmark") -> str:
    return MarkdownIt(preset).render(source)


@dataclass(frozen=True, slots=True)
class MappedRange:
    """A mapped ``[start, end)`` range.

    Attributes:
        ambiguous: The searched text occurs more than once, so another
            occurrence may have been intended.
    """

    start: int
    end: int
    ambiguous: bool = False


class SourceMapper:
    """Translate ranges between raw source text and its rendered projection.

    Both texts are fixed at construction.
    """

    def __init__(self, source: str, projection: str, html: str | None = None) -> None:
        self._source = source
        self._projection = projection
        self._html = html

    @classmethod
    def from_markdown(
        cls,
        source: str,
        *,
        preset: str = "commonmark",
        renderer: Callable[[str], str] | None = None,
    ) -> SourceMapper:
        """Render *source* and project the HTML to plain text.

        The projection uses the same text-run rules as annotation offsets,
        so a span over the rendered document maps directly.
        """
        html = renderer(source) if renderer else render_markdown(source, preset)
        projection = ContentTree(html).text
        return cls(source, projection, html=html)

    @property
    def source(self) -> str:
        return self._source

    @property
    def projection(self) -> str:
        return self._projection

    @property
    def html(self) -> str | None:
        return self._html

    # -- projection -> source ------------------------------------------------

    def projection_to_source(self, start: int, end: int) -> MappedRange:
        """Map a projection range to the source range that produced it.

        Raises:
            MappingError: The projection text cannot be found in the source.
        """
        search = self._projection[start:end]
        if not search or not search.strip():
            raise MappingError(search, f"Empty projection range [{start}, {end})")

        index = self._source.find(search)
        if index != -1:
            ambiguous = self._source.find(search, index + 1) != -1
            return self._result(*self._widen(index, index + len(search)), ambiguous)

        matches = self._fuzzy_matches(search.split())
        first = next(matches, None)
        if first is None:
            logger.error("Failed to find text %r in markdown source", search)
            raise MappingError(search)
        ambiguous = next(matches, None) is not None
        return self._result(*self._widen(*first), ambiguous)

    def _result(self, start: int, end: int, ambiguous: bool) -> MappedRange:
        if ambiguous:
            logger.warning(
                "Text %r occurs more than once; mapped to the first occurrence",
                self._source[start:end],
            )
        return MappedRange(start, end, ambiguous)

    def _widen(self, start: int, end: int) -> tuple[int, int]:
        while start > 0 and self._source[start - 1] in _WIDEN_DELIMITERS:
            start -= 1
        while end < len(self._source) and self._source[end] in _WIDEN_DELIMITERS:
            end += 1
        return start, end

    def _fuzzy_matches(self, words: list[str]) -> Iterator[tuple[int, int]]:
        """Yield every source range matching *words* in order."""
        if not words:
            return
        search_from = 0
        while True:
            index = self._source.find(words[0], search_from)
            if index == -1:
                return
            end = self._match_words(words, index)
            if end is not None:
                yield index, end
            search_from = index + 1

    def _match_words(self, words: list[str], pos: int) -> int | None:
        for i, word in enumerate(words):
            if i:
                pos = self._skip_markup(pos, word[0])
            matched = self._match_word(word, pos)
            if matched is None:
                return None
            pos = matched
        return pos

    def _skip_markup(self, pos: int, next_char: str) -> int:
        """Advance over whitespace, delimiters and ``](target)`` link tails."""
        src = self._source
        while pos < len(src) and src[pos] != next_char:
            char = src[pos]
            if char == "]" and src.startswith("(", pos + 1):
                close = src.find(")", pos + 2)
                if close == -1:
                    break
                pos = close + 1
            elif char.isspace() or char in _SKIP_BETWEEN_WORDS:
                pos += 1
            else:
                break
        return pos

    def _match_word(self, word: str, pos: int) -> int | None:
        """Match *word* at *pos*, stepping over inline delimiters inside it."""
        src = self._source
        i = 0
        while i < len(word):
            if pos >= len(src):
                return None
            if src[pos] == word[i]:
                i += 1
            elif i == 0 or src[pos] not in _INLINE_DELIMITERS:
                return None
            pos += 1
        return pos

    # -- source -> projection ------------------------------------------------

    def source_to_projection(self, start: int, end: int) -> MappedRange:
        """Map a source range to the projection text it renders as.

        Raises:
            MappingError: The stripped text cannot be found in the projection.
        """
        pure = strip_markdown_formatting(self._source[start:end])
        if not pure.strip():
            raise MappingError(pure, f"Empty source range [{start}, {end})")

        index = self._projection.find(pure)
        if index == -1:
            logger.warning("Could not find markdown text %r in projection", pure)
            raise MappingError(pure)

        ambiguous = self._projection.find(pure, index + 1) != -1
        if ambiguous:
            logger.warning(
                "Text %r occurs more than once in the projection; "
                "mapped to the first occurrence",
                pure,
            )
        return MappedRange(index, index + len(pure), ambiguous)
