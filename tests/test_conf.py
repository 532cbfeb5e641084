"""Tests for engine settings loaded from SCHEDULING_* variables.

Run with: pytest tests/test_conf.py -v
"""

import pytest
from pydantic import ValidationError

from scheduling.conf import SchedulingSettings, get_scheduling_settings
from scheduling.domain import TallyPolicy, TieBreak


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "SCHEDULING_MIN_VOTES_TO_FINALIZE",
        "SCHEDULING_TIE_BREAK",
        "SCHEDULING_ALLOW_REOPEN",
        "SCHEDULING_CANDIDATES_CACHE_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_scheduling_settings.cache_clear()
    yield
    get_scheduling_settings.cache_clear()


def test_defaults():
    settings = SchedulingSettings(_env_file=None)
    assert settings.min_votes_to_finalize == 1
    assert settings.tie_break is TieBreak.EARLIEST_START
    assert settings.allow_reopen is False
    assert settings.tally_policy() == TallyPolicy()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SCHEDULING_MIN_VOTES_TO_FINALIZE", "3")
    monkeypatch.setenv("SCHEDULING_TIE_BREAK", "creation_order")
    monkeypatch.setenv("SCHEDULING_ALLOW_REOPEN", "true")
    monkeypatch.setenv("SCHEDULING_CANDIDATES_CACHE_SECONDS", "0")

    settings = SchedulingSettings(_env_file=None)
    assert settings.allow_reopen is True
    assert settings.candidates_cache_seconds == 0
    assert settings.tally_policy() == TallyPolicy(
        min_votes=3, tie_break=TieBreak.CREATION_ORDER
    )


def test_negative_quorum_rejected(monkeypatch):
    monkeypatch.setenv("SCHEDULING_MIN_VOTES_TO_FINALIZE", "-1")
    with pytest.raises(ValidationError):
        SchedulingSettings(_env_file=None)


def test_unknown_tie_break_rejected(monkeypatch):
    monkeypatch.setenv("SCHEDULING_TIE_BREAK", "coin_flip")
    with pytest.raises(ValidationError):
        SchedulingSettings(_env_file=None)


def test_settings_are_cached():
    assert get_scheduling_settings() is get_scheduling_settings()
