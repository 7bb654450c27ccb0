"""
Tests for configuration management in `pethealth/config.py`.

Covers:
- Environment parsing and debug defaults
- Logging level and channel coercion to the expected Literals
- Scheduler settings read from the environment
- get_config cache behavior
- AppConfig validation (debug only allowed in development)
- structlog setup for both renderers
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog
from pydantic import ValidationError

from pethealth.config import (
    AppConfig,
    LoggingConfig,
    SchedulerConfig,
    get_config,
    load_config_from_env,
)
from pethealth.logging_config import configure_logging

SCHEDULER_ENV = (
    "DEDUP_WINDOW_HOURS",
    "FIRE_TOLERANCE_DAYS",
    "MAX_CONCURRENT_PETS",
    "IO_TIMEOUT_SECONDS",
    "NOTIFICATION_CHANNEL",
    "DEFAULT_EVENT_LEAD_DAYS",
    "CATALOG_PATH",
)


@pytest.fixture(autouse=True)
def clear_config_cache(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear the get_config cache and any scheduler overrides from the shell."""
    for name in SCHEDULER_ENV:
        monkeypatch.delenv(name, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_load_config_dev_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    config = load_config_from_env()

    assert config.environment == "development"
    assert config.debug is True
    assert config.logging.format == "console"
    assert config.logging.level == "INFO"
    assert config.scheduler == SchedulerConfig()
    assert config.catalog.path is None


def test_production_uses_json_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "prod")

    config = load_config_from_env()

    assert config.environment == "production"
    assert config.debug is False
    assert config.logging.format == "json"


def test_scheduler_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")
    monkeypatch.setenv("DEDUP_WINDOW_HOURS", "48")
    monkeypatch.setenv("FIRE_TOLERANCE_DAYS", "2")
    monkeypatch.setenv("MAX_CONCURRENT_PETS", "4")
    monkeypatch.setenv("IO_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("DEFAULT_EVENT_LEAD_DAYS", "21")
    monkeypatch.setenv("CATALOG_PATH", "/etc/pethealth/catalog.json")

    config = load_config_from_env()

    assert config.scheduler.dedup_window_hours == 48
    assert config.scheduler.fire_tolerance_days == 2
    assert config.scheduler.max_concurrent_pets == 4
    assert config.scheduler.io_timeout_seconds == 2.5
    assert config.scheduler.default_event_lead_days == 21
    assert config.catalog.path == "/etc/pethealth/catalog.json"


def test_logging_level_literal_coercion(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")

    # Unknown level should coerce to INFO
    monkeypatch.setenv("LOG_LEVEL", "unknown")
    config = load_config_from_env()
    assert config.logging.level == "INFO"

    # Known level should pass through
    monkeypatch.setenv("LOG_LEVEL", "error")
    config = load_config_from_env()
    assert config.logging.level == "ERROR"


def test_channel_literal_coercion(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTIFICATION_CHANNEL", "SMS")
    assert load_config_from_env().scheduler.default_channel == "sms"

    monkeypatch.setenv("NOTIFICATION_CHANNEL", "pigeon")
    assert load_config_from_env().scheduler.default_channel == "in_app"


def test_invalid_scheduler_value_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_CONCURRENT_PETS", "0")

    with pytest.raises(ValidationError):
        load_config_from_env()


def test_get_config_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")

    c1 = get_config()
    c2 = get_config()
    assert c1 is c2  # same object due to lru_cache


def test_app_config_debug_only_in_dev_validation() -> None:
    with pytest.raises(ValueError, match="debug mode is only allowed"):
        AppConfig(environment="production", debug=True)


@pytest.fixture
def reset_logging() -> Iterator[None]:
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


@pytest.mark.parametrize("log_format", ["json", "console"])
def test_configure_logging_renders_events(
    log_format: str, capsys: pytest.CaptureFixture[str], reset_logging: None
) -> None:
    configure_logging(LoggingConfig(level="INFO", format=log_format))  # type: ignore[arg-type]

    structlog.get_logger("pethealth.tests").info("config_check", pets=3)

    out = capsys.readouterr().out
    assert "config_check" in out
    assert "pets" in out
