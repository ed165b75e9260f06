"""Tests for k0s_orchestrator.settings.Settings behavior."""

from typing import Any

import pytest
from pydantic import ValidationError

from k0s_orchestrator.settings import DEFAULT_BACKEND, Settings, get_settings


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch):
    """Defaults should be stable even if external env or .env sets values.

    We explicitly delete the variables and bypass .env loading by passing
    `_env_file=None`.
    """
    for var in [
        "K0S_ORCHESTRATOR_HOST",
        "K0S_ORCHESTRATOR_PORT",
        "K0S_ORCHESTRATOR_LOG_LEVEL",
        "K0S_ORCHESTRATOR_SQL_LOG",
        "K0S_ORCHESTRATOR_RELOAD",
        "K0S_ORCHESTRATOR_DATABASE_URL",
        "K0S_ORCHESTRATOR_LOCK_BACKEND",
        "K0S_ORCHESTRATOR_LOCK_WAIT_TIMEOUT",
        "K0S_ORCHESTRATOR_BACKEND",
    ]:
        monkeypatch.delenv(var, raising=False)
    s = Settings(_env_file=None)
    assert s.host == "0.0.0.0"
    assert s.port == 8080
    assert s.log_level == "INFO"
    assert s.sql_log is False
    assert s.reload is False
    assert s.database_url is None
    assert s.lock_backend == "memory"
    assert s.lock_wait_timeout == 0.0
    assert s.backend == DEFAULT_BACKEND


def test_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("K0S_ORCHESTRATOR_HOST", "127.0.0.1")
    monkeypatch.setenv("K0S_ORCHESTRATOR_PORT", "9090")
    monkeypatch.setenv("K0S_ORCHESTRATOR_SQL_LOG", "true")
    monkeypatch.setenv("K0S_ORCHESTRATOR_LOCK_WAIT_TIMEOUT", "2.5")
    s = Settings(_env_file=None)
    assert s.host == "127.0.0.1"
    assert s.port == 9090
    assert s.sql_log is True
    assert s.lock_wait_timeout == 2.5


def test_case_insensitive_env_name(monkeypatch: pytest.MonkeyPatch):
    # lower-case variable name should still be picked up due to case_sensitive=False
    monkeypatch.setenv("k0s_orchestrator_host", "10.10.10.10")
    s = Settings(_env_file=None)
    assert s.host == "10.10.10.10"


def test_log_level_normalized():
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"


def test_invalid_log_level():
    with pytest.raises(ValidationError, match="Invalid log level"):
        Settings(_env_file=None, log_level="chatty")


def test_get_settings_singleton():
    a = get_settings()
    b = get_settings()
    assert a is b


def test_get_settings_cache_not_affected_by_new_env(monkeypatch: pytest.MonkeyPatch):
    first = get_settings()
    original_host = first.host
    monkeypatch.setenv("K0S_ORCHESTRATOR_HOST", "203.0.113.5")
    second = get_settings()
    assert second is first
    assert second.host == original_host


@pytest.mark.parametrize(
    "override,expected",
    [
        ({"host": "1.1.1.1"}, "1.1.1.1"),
        ({"port": 1234}, 1234),
        ({"lock_wait_timeout": 10}, 10.0),
    ],
)
def test_direct_instantiation_with_overrides(override: dict[str, Any], expected: Any):
    s = Settings(_env_file=None, **override)
    key = next(iter(override.keys()))
    assert getattr(s, key) == expected


def test_postgres_lock_requires_database():
    with pytest.raises(ValidationError, match="requires database_url"):
        Settings(_env_file=None, lock_backend="postgres")


def test_postgres_lock_with_database():
    s = Settings(_env_file=None, lock_backend="postgres", database_url="postgresql+psycopg://u:p@h/db")
    assert s.lock_backend == "postgres"


def test_unknown_lock_backend():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, lock_backend="redis")


def test_backend_must_be_import_path():
    with pytest.raises(ValidationError, match="expected 'module:Class'"):
        Settings(_env_file=None, backend="k0s_orchestrator.backends.simulated")


def test_negative_lock_wait_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, lock_wait_timeout=-1)


def test_database_url_override(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("K0S_ORCHESTRATOR_DATABASE_URL", "postgresql+psycopg://u:p@h/db")
    s = Settings(_env_file=None)
    assert s.database_url == "postgresql+psycopg://u:p@h/db"
