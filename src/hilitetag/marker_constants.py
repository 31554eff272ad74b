"""Marker fragment constants.

A marker fragment is a ``<span>`` inserted into the content tree around one
piece of an annotated range.  Every fragment of the same annotation shares a
``data-marker-id``; the first and last fragments in document order carry the
start/end classes that bound the annotation during reconstruction.

Used by tree.py (detection), materialize.py (creation), query.py and
mutate.py (reconstruction and removal).
"""

from __future__ import annotations

MARKER_TAG = "span"
MARKER_CLASS = "marker"
MARKER_START_CLASS = "marker-start"
MARKER_END_CLASS = "marker-end"
MARKER_ID_ATTR = "data-marker-id"
TAG_ID_ATTR = "data-tag-id"

# Length of generated marker ids (matches ids already stored by hosts)
MARKER_ID_LENGTH = 10
