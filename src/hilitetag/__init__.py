"""hilitetag - text-range annotation over HTML documents.

Turns user selections into persistent, tagged, possibly nested or
overlapping annotations, and reconstructs them as plain offset records.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from hilitetag.annotator import HiLiteContent
from hilitetag.click import MarkerBox, Rect, resolve_click
from hilitetag.errors import (
    AlreadyAnnotatedError,
    EmptySelectionError,
    HiliteError,
    MappingError,
    NothingToAnnotateError,
    UnknownMarkerError,
    UnknownTagError,
)
from hilitetag.mapper import MappedRange, SourceMapper
from hilitetag.models import HiLiteData, dump_spans, load_spans
from hilitetag.restore import RestoreReport
from hilitetag.tags import TagDefinition, TagRegistry

__version__ = "0.1.0"

__all__ = [
    "AlreadyAnnotatedError",
    "EmptySelectionError",
    "HiLiteContent",
    "HiLiteData",
    "HiliteError",
    "MappedRange",
    "MappingError",
    "MarkerBox",
    "NothingToAnnotateError",
    "Rect",
    "RestoreReport",
    "SourceMapper",
    "TagDefinition",
    "TagRegistry",
    "UnknownMarkerError",
    "UnknownTagError",
    "__version__",
    "dump_spans",
    "load_spans",
    "resolve_click",
    "setup_logging",
]


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """Configure logging to the console and, optionally, a rotating file."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if log_file else level)

    # Console handler - less verbose
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)

    if log_file is None:
        return

    log_file.parent.mkdir(parents=True, exist_ok=True)
    # File handler - detailed logging with rotation (10MB, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(file_handler)

    logging.info("Logging configured. Log file: %s", log_file.absolute())
