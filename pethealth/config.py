"""
Runtime settings for the pet health scheduler.

Settings come from environment variables (optionally a .env file) and are
validated once with pydantic when first requested. Unknown enum-like values
fall back to safe defaults; out-of-range numbers fail at startup.
"""

import os
from functools import lru_cache
from typing import Literal, TypeVar, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

load_dotenv()

Environment = Literal["development", "staging", "production"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Channel = Literal["push", "sms", "email", "in_app"]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
CHANNELS = ("push", "sms", "email", "in_app")
ENVIRONMENT_ALIASES: dict[str, Environment] = {
    "dev": "development",
    "development": "development",
    "stage": "staging",
    "staging": "staging",
}

LiteralT = TypeVar("LiteralT", bound=str)


class SchedulerConfig(BaseModel):
    """Notification scheduler batch job settings."""

    dedup_window_hours: int = Field(
        default=24, gt=0, description="Suppress a second notice for the same pet and code"
    )
    fire_tolerance_days: int = Field(
        default=1, ge=0, description="Days after the fire date a missed reminder may still go out"
    )
    max_concurrent_pets: int = Field(
        default=10, gt=0, description="Maximum number of pets processed concurrently"
    )
    io_timeout_seconds: float = Field(
        default=10.0, gt=0.0, description="Timeout for each record store or sender call"
    )
    default_channel: Channel = Field(default="in_app", description="Delivery channel")
    default_event_lead_days: int = Field(
        default=14, ge=0, description="Lead time for events that do not set their own"
    )


class CatalogConfig(BaseModel):
    """Reference catalog location."""

    path: str | None = Field(
        default=None, description="JSON catalog file; the built-in catalog is used when unset"
    )


class LoggingConfig(BaseModel):
    """structlog output settings."""

    level: LogLevel = Field(default="INFO", description="Minimum level emitted")
    format: Literal["json", "console"] = Field(default="json", description="Renderer")


class AppConfig(BaseModel):
    """Everything the scheduler process needs, grouped by concern."""

    environment: Environment = Field(default="development")
    debug: bool = Field(default=False, description="Console logs and verbose output")

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def _coerce(raw: str, allowed: tuple[str, ...], default: LiteralT, upper: bool = False) -> LiteralT:
    value = raw.strip().upper() if upper else raw.strip().lower()
    return cast(LiteralT, value if value in allowed else default)


def _environment(raw: str) -> Environment:
    # anything unrecognised is treated as production
    return ENVIRONMENT_ALIASES.get(raw.strip().lower(), "production")


def load_config_from_env() -> AppConfig:
    """Build and validate an AppConfig from the current environment."""
    environment = _environment(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    return AppConfig(
        environment=environment,
        debug=debug,
        scheduler=SchedulerConfig(
            dedup_window_hours=int(os.getenv("DEDUP_WINDOW_HOURS", "24")),
            fire_tolerance_days=int(os.getenv("FIRE_TOLERANCE_DAYS", "1")),
            max_concurrent_pets=int(os.getenv("MAX_CONCURRENT_PETS", "10")),
            io_timeout_seconds=float(os.getenv("IO_TIMEOUT_SECONDS", "10.0")),
            default_channel=_coerce(
                os.getenv("NOTIFICATION_CHANNEL", "in_app"), CHANNELS, cast(Channel, "in_app")
            ),
            default_event_lead_days=int(os.getenv("DEFAULT_EVENT_LEAD_DAYS", "14")),
        ),
        catalog=CatalogConfig(path=os.getenv("CATALOG_PATH") or None),
        logging=LoggingConfig(
            level=_coerce(
                os.getenv("LOG_LEVEL", "INFO"), LOG_LEVELS, cast(LogLevel, "INFO"), upper=True
            ),
            format="console" if debug else "json",
        ),
    )


@lru_cache
def get_config() -> AppConfig:
    """Process-wide configuration, loaded on first use."""
    return load_config_from_env()


def validate_config() -> None:
    """Load the configuration eagerly so a bad setting stops the process at startup."""
    try:
        config = get_config()
    except Exception as e:
        print(f"Invalid scheduler configuration: {e}")
        raise

    print(f"Scheduler configured for {config.environment}")
    print(f"Catalog: {config.catalog.path or 'built-in'}")


def print_config_summary() -> None:
    config = get_config()
    scheduler = config.scheduler

    print("\nSCHEDULER SETTINGS")
    print(f"Environment: {config.environment} (debug={config.debug})")
    print(f"Log level: {config.logging.level} ({config.logging.format})")
    print(f"Dedup window: {scheduler.dedup_window_hours}h")
    print(f"Fire tolerance: {scheduler.fire_tolerance_days}d")
    print(f"Concurrent pets: {scheduler.max_concurrent_pets}")
    print(f"I/O timeout: {scheduler.io_timeout_seconds}s")
    print(f"Channel: {scheduler.default_channel}")


if __name__ == "__main__":
    validate_config()
    print_config_summary()
