"""Tests for gitwhere configuration."""

import pytest
from pydantic import ValidationError

from gitwhere.config import GitWhereSettings


class TestGitWhereSettings:
    """Tests for GitWhereSettings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("FETCH_TIMEOUT", "MAX_CONCURRENCY", "CONTEXT_LINES", "THEME"):
            monkeypatch.delenv(f"GITWHERE_{name}", raising=False)

        settings = GitWhereSettings()

        assert settings.fetch_timeout == 120.0
        assert settings.max_concurrency == 8
        assert settings.context_lines == 5
        assert settings.theme == "dracula"
        assert settings.detect_copies is False

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITWHERE_FETCH_TIMEOUT", "30")
        monkeypatch.setenv("GITWHERE_DETECT_COPIES", "true")

        settings = GitWhereSettings()

        assert settings.fetch_timeout == 30.0
        assert settings.detect_copies is True

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValidationError):
            GitWhereSettings(fetch_timeout=0)

    def test_rejects_zero_concurrency(self) -> None:
        with pytest.raises(ValidationError):
            GitWhereSettings(max_concurrency=0)
