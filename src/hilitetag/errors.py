"""Exceptions raised by the annotation engine.

Engine functions raise these before touching the tree; the
``HiLiteContent`` handle catches ``HiliteError``, logs it and returns an
absent result so the host never crashes on a validation failure.
"""

from __future__ import annotations


class HiliteError(Exception):
    """Base class for annotation engine failures."""


class EmptySelectionError(HiliteError):
    """No selection, a collapsed selection, or one outside the document."""


class NothingToAnnotateError(HiliteError):
    """The selection contains only whitespace."""


class AlreadyAnnotatedError(HiliteError):
    """Overlap is disabled and every selected run is already annotated."""


class UnknownTagError(HiliteError):
    def __init__(self, tag_id: str) -> None:
        super().__init__(f"Tag with id {tag_id!r} not found")
        self.tag_id = tag_id


class UnknownMarkerError(HiliteError):
    def __init__(self, marker_id: str) -> None:
        super().__init__(f"No markers found with id {marker_id!r}")
        self.marker_id = marker_id


class MappingError(HiliteError):
    """Text could not be located in the counterpart representation.

    Attributes:
        text: The substring that failed to map.
    """

    def __init__(self, text: str, message: str | None = None) -> None:
        super().__init__(message or f"Failed to find text {text!r}")
        self.text = text
