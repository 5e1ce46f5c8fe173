import logging

import pytest

from starlookup.config import (
    Environment, LookupSettings, configure_logging, create_store, get_settings, reset_settings, set_settings
)
from starlookup.persistence.memory import MemoryStore
from starlookup.persistence.sql import SQLStore


def test_defaults():
    settings = LookupSettings()
    assert settings.environment == Environment.DEVELOPMENT
    assert settings.fail_soft
    assert not settings.strict_cardinality
    assert settings.store.backend == "memory"


@pytest.mark.parametrize("environment, strict, level", [
    (Environment.DEVELOPMENT, True, "DEBUG"),
    (Environment.TESTING, True, "WARNING"),
    (Environment.PRODUCTION, False, "INFO"),
])
def test_for_environment(environment, strict, level):
    settings = LookupSettings.for_environment(environment)
    assert settings.environment == environment
    assert settings.strict_cardinality is strict
    assert settings.logging.level == level
    assert settings.fail_soft


def test_from_dict():
    settings = LookupSettings.from_dict({
        "environment": "production",
        "fail_soft": False,
        "store": {"backend": "sql", "url": "sqlite:///lookup.db", "unknown": 1},
        "logging": {"level": "ERROR"},
    })
    assert settings.environment == Environment.PRODUCTION
    assert not settings.fail_soft
    assert settings.store.backend == "sql"
    assert settings.store.url == "sqlite:///lookup.db"
    assert not hasattr(settings.store, "unknown")
    assert settings.logging.level == "ERROR"


def test_to_dict_round_trips():
    settings = LookupSettings.for_environment(Environment.TESTING)
    settings.log_store_failures = False
    assert LookupSettings.from_dict(settings.to_dict()) == settings


def test_from_env(monkeypatch):
    monkeypatch.setenv("STARLOOKUP_ENV", "production")
    monkeypatch.setenv("STARLOOKUP_FAIL_SOFT", "no")
    monkeypatch.setenv("STARLOOKUP_STRICT_CARDINALITY", "TRUE")
    monkeypatch.setenv("STARLOOKUP_STORE", "sql")
    monkeypatch.setenv("STARLOOKUP_DATABASE_URL", "sqlite:///x.db")
    monkeypatch.setenv("STARLOOKUP_LOG_LEVEL", "debug")

    settings = LookupSettings.from_env()
    assert settings.environment == Environment.PRODUCTION
    assert not settings.fail_soft
    assert settings.strict_cardinality
    assert settings.store.backend == "sql"
    assert settings.store.url == "sqlite:///x.db"
    assert settings.logging.level == "DEBUG"


def test_global_settings_load_from_env(monkeypatch):
    monkeypatch.setenv("STARLOOKUP_ENV", "testing")
    reset_settings()
    assert get_settings().environment == Environment.TESTING

    custom = LookupSettings(fail_soft=False)
    set_settings(custom)
    assert get_settings() is custom


def test_create_store():
    memory = create_store(LookupSettings())
    assert isinstance(memory, MemoryStore)

    settings = LookupSettings()
    settings.store.backend = "sql"
    sql = create_store(settings)
    try:
        assert isinstance(sql, SQLStore)
        assert str(sql.engine.url) == "sqlite://"
    finally:
        sql.close()


def test_create_store_unknown_backend():
    settings = LookupSettings()
    settings.store.backend = "redis"
    with pytest.raises(ValueError):
        create_store(settings)


def test_configure_logging(monkeypatch):
    captured = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))

    settings = LookupSettings()
    settings.logging.level = "warning"
    configure_logging(settings)
    assert captured["level"] == logging.WARNING
    assert captured["format"] == settings.logging.format
