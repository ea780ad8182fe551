"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from src.config.settings import Environment, Settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("QUESTION_MATCH_THRESHOLD", raising=False)
        settings = Settings(_env_file=None)
        assert settings.EMBEDDING_MODEL == "text-embedding-3-small"
        assert settings.ENVIRONMENT == Environment.DEV
        assert settings.is_production is False

    def test_match_options_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("QUESTION_MATCH_THRESHOLD", "0.9")
        monkeypatch.setenv("PATTERN_MATCH_THRESHOLD", "0.6")
        monkeypatch.setenv("ALTERNATIVES_FLOOR", "0.25")
        monkeypatch.setenv("MATCH_TOP_K", "8")

        opts = Settings(_env_file=None).match_options()
        assert opts.question_threshold == 0.9
        assert opts.pattern_threshold == 0.6
        assert opts.alternatives_floor == 0.25
        assert opts.top_k == 8

    def test_misordered_thresholds_fail_at_construction(
        self, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("QUESTION_MATCH_THRESHOLD", "0.5")
        with pytest.raises(ValidationError, match="question_threshold"):
            Settings(_env_file=None)

    def test_pattern_threshold_below_floor_rejected(self) -> None:
        with pytest.raises(ValidationError, match="alternatives_floor"):
            Settings(
                _env_file=None,
                PATTERN_MATCH_THRESHOLD=0.2,
                ALTERNATIVES_FLOOR=0.3,
            )

    def test_timeouts_must_be_positive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMBEDDING_TIMEOUT_S", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)
