"""Tests for pydantic-settings configuration."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from hilitetag.config import AnnotatorConfig, LoggingConfig, Settings, get_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear any env vars that might interfere."""
    for key in list(os.environ):
        if key.startswith(("ANNOTATOR__", "LOGGING__", "MAPPER__")):
            monkeypatch.delenv(key, raising=False)


class TestDefaults:
    def test_annotator_toggles_off(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.annotator == AnnotatorConfig()
        assert not s.annotator.overlap_tag
        assert s.annotator.default_tag_id is None

    def test_logging_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.logging.level == "INFO"
        assert s.logging.log_file is None

    def test_mapper_preset(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.mapper.preset == "commonmark"


class TestEnvironmentOverrides:
    """Nested settings use the double-underscore delimiter."""

    def test_annotator_flags(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANNOTATOR__OVERLAP_TAG", "true")
        monkeypatch.setenv("ANNOTATOR__DEFAULT_TAG_ID", "important")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.annotator.overlap_tag is True
        assert s.annotator.default_tag_id == "important"

    def test_log_level_normalised(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOGGING__LEVEL", "debug")
        monkeypatch.setenv("LOGGING__LOG_FILE", "logs/hilitetag.log")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.logging.level == "DEBUG"
        assert s.logging.log_file == Path("logs/hilitetag.log")

    def test_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("MAPPER__PRESET=gfm-like\nUNRELATED=1\n")
        s = Settings(_env_file=env_file)  # type: ignore[call-arg]
        assert s.mapper.preset == "gfm-like"


class TestValidation:
    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown log level"):
            LoggingConfig(level="LOUD")

    def test_unknown_preset_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAPPER__PRESET", "nope")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]


class TestGetSettings:
    def test_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
