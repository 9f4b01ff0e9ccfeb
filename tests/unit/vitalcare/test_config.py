"""
Tests for configuration management in `vitalcare/config.py`.

Covers:
- Environment parsing and debug defaults
- Logging level coercion to the expected Literal
- Duplicate-alert flag and audience parsing
- Reporting timezone validation
- get_config cache behavior
- AppConfig validation (debug only allowed in development)
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from vitalcare.config import (
    AppConfig,
    LoggingConfig,
    NotificationConfig,
    ReportingConfig,
    get_config,
    load_config_from_env,
)
from vitalcare.domain.models import Role


@pytest.fixture(autouse=True)
def clear_config_cache() -> Iterator[None]:
    """Ensure get_config cache is cleared before and after each test."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "ENVIRONMENT",
        "LOG_LEVEL",
        "SUPPRESS_DUPLICATE_ALERTS",
        "ALERT_TITLE",
        "CLINICAL_ALERT_AUDIENCE",
        "REGISTRATION_AUDIENCE",
        "REPORT_TIMEZONE",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_config_dev_defaults(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("ENVIRONMENT", "development")

    config = load_config_from_env()

    assert config.environment == "development"
    assert config.debug is True
    assert config.logging.format == "console"
    assert config.logging.level == "INFO"
    assert config.evaluation.suppress_duplicate_alerts is True
    assert config.notifications.clinical_alert_audience == frozenset({Role.ADMIN, Role.NURSE})
    assert config.notifications.registration_audience == frozenset({Role.ADMIN})
    assert config.reporting.timezone == "UTC"


def test_production_uses_json_logging_without_debug(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("ENVIRONMENT", "prod")

    config = load_config_from_env()

    assert config.environment == "production"
    assert config.debug is False
    assert config.logging.format == "json"


@pytest.mark.parametrize("raw,expected", [("debug", "DEBUG"), ("Warning", "WARNING"), ("loud", "INFO")])
def test_log_level_coercion(clean_env: pytest.MonkeyPatch, raw: str, expected: str) -> None:
    clean_env.setenv("LOG_LEVEL", raw)
    assert load_config_from_env().logging.level == expected


@pytest.mark.parametrize("raw,expected", [("false", False), ("0", False), ("1", True), ("yes", True)])
def test_duplicate_alert_flag_parsing(
    clean_env: pytest.MonkeyPatch, raw: str, expected: bool
) -> None:
    clean_env.setenv("SUPPRESS_DUPLICATE_ALERTS", raw)
    assert load_config_from_env().evaluation.suppress_duplicate_alerts is expected


def test_audience_parsing(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("CLINICAL_ALERT_AUDIENCE", "nurse, Manager")
    config = load_config_from_env()
    assert config.notifications.clinical_alert_audience == frozenset({Role.NURSE, Role.MANAGER})


def test_unknown_role_in_audience_is_rejected(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("REGISTRATION_AUDIENCE", "admin,janitor")
    with pytest.raises(ValueError, match="janitor"):
        load_config_from_env()


def test_empty_audience_is_rejected() -> None:
    with pytest.raises(ValueError, match="at least one role"):
        NotificationConfig(clinical_alert_audience=frozenset())


def test_report_timezone(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("REPORT_TIMEZONE", "America/Sao_Paulo")
    config = load_config_from_env()
    assert config.reporting.tzinfo.key == "America/Sao_Paulo"


def test_unknown_timezone_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown timezone"):
        ReportingConfig(timezone="Mars/Olympus_Mons")


def test_get_config_is_cached(clean_env: pytest.MonkeyPatch) -> None:
    first = get_config()
    clean_env.setenv("ALERT_TITLE", "Changed")
    assert get_config() is first

    get_config.cache_clear()
    assert get_config().evaluation.alert_title == "Changed"


def test_debug_only_allowed_in_development() -> None:
    with pytest.raises(ValueError, match="debug mode is only allowed"):
        AppConfig(environment="production", debug=True)

    assert AppConfig(environment="development", debug=True).debug is True


def test_logging_config_defaults() -> None:
    assert LoggingConfig().model_dump() == {"level": "INFO", "format": "json"}
