"""Settings and error taxonomy tests."""

from __future__ import annotations

import pytest

from dojoxp.config import Settings
from dojoxp.errors import DojoError, Misconfiguration, NotFound, StoreFailure, TerminalStateError, ValidationError


class TestSettings:
    """XP constants are named configuration."""

    def test_defaults(self, settings):
        assert settings.habit_xp == 3
        assert settings.habit_daily_cap(False) == 9
        assert settings.habit_daily_cap(True) == 21
        assert settings.family_daily_limit == 3
        assert settings.spot_check_rate == 0.1
        assert settings.verified_streak_threshold == 10
        assert settings.trusted_streak_threshold == 25
        assert settings.database_isolation_level == "SERIALIZABLE"
        assert settings.video_decision_channel == "pubsub:video_decision"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DOJOXP_HABIT_DAILY_CAP_FREE", "12")
        monkeypatch.setenv("DOJOXP_QUIZ_CORRECT_XP", "50")
        s = Settings(_env_file=None)
        assert s.habit_daily_cap(False) == 12
        assert s.quiz_correct_xp == 50


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        ("exc", "status", "retryable"),
        [
            (ValidationError, 400, False),
            (NotFound, 404, False),
            (TerminalStateError, 409, False),
            (StoreFailure, 503, True),
            (Misconfiguration, 500, False),
        ],
    )
    def test_status_mapping(self, exc, status, retryable):
        err = exc("boom")
        assert isinstance(err, DojoError)
        assert err.status_code == status
        assert err.retryable is retryable
        assert err.detail == "boom"
        assert str(err) == "boom"
