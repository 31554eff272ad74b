"""Centralised configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/hilitetag/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class AnnotatorConfig(BaseModel):
    """Behaviour toggles for the ``HiLiteContent`` handle.

    Attributes:
        auto_word_boundaries: Grow selections outward to whole words.
        auto_tag: Annotate with the default tag when a selection is released.
        overlap_tag: Allow a new annotation to wrap already annotated text.
        default_tag_id: Registry id of the default tag, used when the host
            does not pass a ``TagDefinition`` explicitly.
    """

    auto_word_boundaries: bool = False
    auto_tag: bool = False
    overlap_tag: bool = False
    default_tag_id: str | None = None


class LoggingConfig(BaseModel):
    """Diagnostics output."""

    level: str = "INFO"
    log_file: Path | None = None

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            msg = f"Unknown log level: {value!r}"
            raise ValueError(msg)
        return level


class MapperConfig(BaseModel):
    """Markdown rendering used by the position mapper."""

    preset: Literal["commonmark", "gfm-like", "zero", "js-default"] = "commonmark"


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``ANNOTATOR__OVERLAP_TAG``, ``LOGGING__LEVEL``, ``MAPPER__PRESET``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    annotator: AnnotatorConfig = AnnotatorConfig()
    logging: LoggingConfig = LoggingConfig()
    mapper: MapperConfig = MapperConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.debug("Settings: no .env file found, using env vars and defaults")

    return settings
