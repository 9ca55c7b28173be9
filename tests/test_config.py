"""Unit tests for core/config.py -- environment-driven settings.

Covers:
- defaults (port, cookie name, TTL, bcrypt cost)
- SESSION_SECRET policy: required in production, generated in DEBUG, min length
- env overrides
- get_settings() singleton
"""

import pytest

from core.config import Settings, get_settings

_GOOD_SECRET = "s" * 32


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DEBUG", "SESSION_SECRET", "PORT", "BCRYPT_ROUNDS", "SECURE_COOKIES", "SESSION_TTL_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    clean_env.setenv("SESSION_SECRET", _GOOD_SECRET)
    s = Settings(_env_file=None)
    assert s.port == 3333
    assert s.session_cookie_name == "user_session"
    assert s.session_ttl_seconds == 3600
    assert s.bcrypt_rounds == 10
    assert s.secure_cookies is False
    assert s.debug is False


def test_secret_required_in_production(clean_env) -> None:
    with pytest.raises(ValueError, match="SESSION_SECRET is required"):
        Settings(_env_file=None)


def test_secret_generated_in_debug(clean_env) -> None:
    clean_env.setenv("DEBUG", "true")
    s = Settings(_env_file=None)
    assert len(s.session_secret) == 64


def test_short_secret_rejected(clean_env) -> None:
    clean_env.setenv("SESSION_SECRET", "too-short")
    with pytest.raises(ValueError, match="at least 32 characters"):
        Settings(_env_file=None)


def test_env_overrides(clean_env) -> None:
    clean_env.setenv("SESSION_SECRET", _GOOD_SECRET)
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("SECURE_COOKIES", "true")
    clean_env.setenv("BCRYPT_ROUNDS", "12")
    s = Settings(_env_file=None)
    assert s.port == 8080
    assert s.secure_cookies is True
    assert s.bcrypt_rounds == 12
    assert s.session_secret == _GOOD_SECRET


@pytest.mark.parametrize("rounds", ["3", "32"])
def test_bcrypt_rounds_bounds(clean_env, rounds: str) -> None:
    clean_env.setenv("SESSION_SECRET", _GOOD_SECRET)
    clean_env.setenv("BCRYPT_ROUNDS", rounds)
    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
