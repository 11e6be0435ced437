"""Configuration management - Centralized configuration for RiskGate.

Provides environment-aware configuration with sensible defaults.
All configuration is loaded from environment variables with fallbacks.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Type, TypeVar

from riskgate.common.constants import (
    CollaboratorConstants,
    HistoryConstants,
    VelocityConstants,
)
from riskgate.common.exceptions import ConfigurationError


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class VelocityBackend(str, Enum):
    """Backing store for the velocity counter."""
    MEMORY = "memory"
    REDIS = "redis"


class EventLogSource(str, Enum):
    """Where historical event log partitions are read from."""
    LOCAL = "local"
    S3 = "s3"


class UnknownUserEvents(str, Enum):
    """Whether login/logout for unknown users publish a FAILURE event.

    LEGACY keeps the historical asymmetry: login publishes, logout does not.
    """
    LEGACY = "legacy"
    ALWAYS = "always"
    NEVER = "never"


E = TypeVar("E", bound=Enum)


def _get_project_root() -> Path:
    """Get the project root directory."""
    # settings.py -> config -> common -> riskgate -> src -> project_root
    current = Path(__file__).resolve()
    return current.parent.parent.parent.parent.parent


def _env_enum(enum_cls: Type[E], name: str, default: str) -> E:
    raw = os.getenv(name, default)
    try:
        return enum_cls(raw)
    except ValueError as e:
        allowed = [m.value for m in enum_cls]
        raise ConfigurationError(
            f"Invalid value for {name}: {raw!r}",
            details={"variable": name, "allowed": allowed},
        ) from e


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def _env_number(name: str, default: str, cast=int):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid numeric value for {name}: {raw!r}",
            details={"variable": name},
        ) from e


@dataclass
class Config:
    """Central configuration object for RiskGate.

    All settings can be overridden via environment variables prefixed with RISKGATE_.

    Example:
        RISKGATE_ENVIRONMENT=production
        RISKGATE_VELOCITY_BACKEND=redis
        RISKGATE_REDIS_URL=redis://cache:6379/0
    """

    # Core settings
    environment: Environment = field(
        default_factory=lambda: _env_enum(Environment, "RISKGATE_ENVIRONMENT", "development")
    )
    debug: bool = field(
        default_factory=lambda: _env_bool("RISKGATE_DEBUG", "false")
    )
    log_level: LogLevel = field(
        default_factory=lambda: _env_enum(LogLevel, "RISKGATE_LOG_LEVEL", "INFO")
    )

    # Paths
    project_root: Path = field(default_factory=_get_project_root)

    # API settings
    api_host: str = field(
        default_factory=lambda: os.getenv("RISKGATE_API_HOST", "0.0.0.0")
    )
    api_port: int = field(
        default_factory=lambda: _env_number("RISKGATE_API_PORT", "8080")
    )

    # Account seed file
    accounts_file: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["RISKGATE_ACCOUNTS_FILE"])
            if os.getenv("RISKGATE_ACCOUNTS_FILE") else None
        )
    )

    # Velocity counter
    velocity_backend: VelocityBackend = field(
        default_factory=lambda: _env_enum(VelocityBackend, "RISKGATE_VELOCITY_BACKEND", "memory")
    )
    redis_url: Optional[str] = field(
        default_factory=lambda: os.getenv("RISKGATE_REDIS_URL")
    )
    velocity_window_seconds: int = field(
        default_factory=lambda: _env_number(
            "RISKGATE_VELOCITY_WINDOW_SECONDS", str(VelocityConstants.WINDOW_SECONDS)
        )
    )

    # Event log (history for the baseline calculator)
    event_log_source: EventLogSource = field(
        default_factory=lambda: _env_enum(EventLogSource, "RISKGATE_EVENT_LOG_SOURCE", "local")
    )
    event_log_dir: Path = field(
        default_factory=lambda: Path(os.getenv("RISKGATE_EVENT_LOG_DIR", "./logs"))
    )
    event_log_s3_bucket: Optional[str] = field(
        default_factory=lambda: os.getenv("RISKGATE_EVENT_LOG_S3_BUCKET")
    )
    event_log_s3_prefix: str = field(
        default_factory=lambda: os.getenv("RISKGATE_EVENT_LOG_S3_PREFIX", "fds-events/")
    )
    aws_region: str = field(
        default_factory=lambda: os.getenv("AWS_DEFAULT_REGION", "us-east-1")
    )

    # Event sink
    webhook_url: Optional[str] = field(
        default_factory=lambda: os.getenv("RISKGATE_WEBHOOK_URL")
    )
    write_event_log: bool = field(
        default_factory=lambda: _env_bool("RISKGATE_WRITE_EVENT_LOG", "true")
    )
    unknown_user_events: UnknownUserEvents = field(
        default_factory=lambda: _env_enum(
            UnknownUserEvents, "RISKGATE_UNKNOWN_USER_EVENTS", "legacy"
        )
    )

    # Risk registry (score provider)
    risk_registry_url: Optional[str] = field(
        default_factory=lambda: os.getenv("RISKGATE_RISK_REGISTRY_URL")
    )
    collaborator_timeout_seconds: float = field(
        default_factory=lambda: _env_number(
            "RISKGATE_COLLABORATOR_TIMEOUT_SECONDS",
            str(CollaboratorConstants.TIMEOUT_SECONDS),
            cast=float,
        )
    )

    # Baseline calculator
    baseline_lookback_days: int = field(
        default_factory=lambda: _env_number(
            "RISKGATE_BASELINE_LOOKBACK_DAYS", str(HistoryConstants.LOOKBACK_DAYS)
        )
    )
    baseline_workers: int = field(
        default_factory=lambda: _env_number(
            "RISKGATE_BASELINE_WORKERS", str(HistoryConstants.WORKERS)
        )
    )
    baseline_timeout_seconds: float = field(
        default_factory=lambda: _env_number(
            "RISKGATE_BASELINE_TIMEOUT_SECONDS",
            str(HistoryConstants.TIMEOUT_SECONDS),
            cast=float,
        )
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.velocity_backend == VelocityBackend.REDIS and not self.redis_url:
            raise ConfigurationError(
                "RISKGATE_REDIS_URL must be set when using the redis velocity backend"
            )

        if self.event_log_source == EventLogSource.S3 and not self.event_log_s3_bucket:
            raise ConfigurationError(
                "RISKGATE_EVENT_LOG_S3_BUCKET must be set when reading history from S3"
            )

        if self.velocity_window_seconds <= 0:
            raise ConfigurationError("Velocity window must be positive")

        if self.baseline_lookback_days < 0:
            raise ConfigurationError("Baseline lookback days cannot be negative")

        if self.baseline_workers < 1:
            raise ConfigurationError("At least one baseline worker is required")

        if self.collaborator_timeout_seconds <= 0:
            raise ConfigurationError("Collaborator timeout must be positive")

        # Warn about debug in production
        if self.environment == Environment.PRODUCTION and self.debug:
            import warnings
            warnings.warn(
                "Debug mode is enabled in production environment",
                RuntimeWarning,
                stacklevel=2
            )

    @property
    def config_dir(self) -> Path:
        """Get the config directory path."""
        return self.project_root / "config"

    @property
    def resolved_accounts_file(self) -> Path:
        """Accounts seed file, defaulting to config/accounts.yaml."""
        return self.accounts_file or self.config_dir / "accounts.yaml"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config: The global configuration singleton.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
