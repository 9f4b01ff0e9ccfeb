"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Clinical thresholds are not configurable: they live in the reference range table
"""

import os
from functools import lru_cache
from typing import Literal, cast
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from vitalcare.domain.models import Role

# Load environment variables from .env file
load_dotenv()


class EvaluationConfig(BaseModel):
    """Measurement evaluation and clinical alert settings."""

    suppress_duplicate_alerts: bool = Field(
        default=True,
        description="Skip the alert when one already exists for the same measurement",
    )
    alert_title: str = Field(
        default="Vital sign alert", min_length=1, description="Title of clinical alerts"
    )


class NotificationConfig(BaseModel):
    """Audience routing for broadcast notifications."""

    clinical_alert_audience: frozenset[Role] = Field(
        default=frozenset({Role.ADMIN, Role.NURSE}),
        description="Roles clinical alerts are pushed to",
    )
    registration_audience: frozenset[Role] = Field(
        default=frozenset({Role.ADMIN}),
        description="Roles pending-registration notices are pushed to",
    )

    @field_validator("clinical_alert_audience", "registration_audience")
    @classmethod
    def audience_not_empty(cls, v: frozenset[Role]) -> frozenset[Role]:
        if not v:
            raise ValueError("broadcast audience must name at least one role")
        return v


class ReportingConfig(BaseModel):
    """Report computation settings."""

    timezone: str = Field(
        default="UTC", description="Timezone day-level report bounds are interpreted in"
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def _parse_bool(val: str | None, default: bool) -> bool:
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


def _parse_roles(val: str | None, default: frozenset[Role]) -> frozenset[Role]:
    """Parse a comma-separated role list; unknown role names are a configuration error."""
    if val is None or not val.strip():
        return default
    try:
        return frozenset(Role(part.strip().lower()) for part in val.split(",") if part.strip())
    except ValueError as e:
        raise ValueError(f"Invalid role list {val!r}: {e}") from e


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    evaluation_config = EvaluationConfig(
        suppress_duplicate_alerts=_parse_bool(os.getenv("SUPPRESS_DUPLICATE_ALERTS"), True),
        alert_title=os.getenv("ALERT_TITLE", "Vital sign alert"),
    )

    defaults = NotificationConfig()
    notification_config = NotificationConfig(
        clinical_alert_audience=_parse_roles(
            os.getenv("CLINICAL_ALERT_AUDIENCE"), defaults.clinical_alert_audience
        ),
        registration_audience=_parse_roles(
            os.getenv("REGISTRATION_AUDIENCE"), defaults.registration_audience
        ),
    )

    reporting_config = ReportingConfig(timezone=os.getenv("REPORT_TIMEZONE", "UTC"))

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        evaluation=evaluation_config,
        notifications=notification_config,
        reporting=reporting_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level} ({config.logging.format})")

    print("\nEVALUATION")
    print(f"Suppress Duplicate Alerts: {config.evaluation.suppress_duplicate_alerts}")
    print(f"Alert Title: {config.evaluation.alert_title}")

    print("\nNOTIFICATIONS")
    print(
        "Clinical Alert Audience: "
        f"{', '.join(sorted(r.value for r in config.notifications.clinical_alert_audience))}"
    )
    print(
        "Registration Audience: "
        f"{', '.join(sorted(r.value for r in config.notifications.registration_audience))}"
    )

    print("\nREPORTING")
    print(f"Timezone: {config.reporting.timezone}")


if __name__ == "__main__":
    print_config_summary()
