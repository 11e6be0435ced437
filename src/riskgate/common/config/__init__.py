"""Configuration module - Centralized config management system."""

from riskgate.common.config.settings import (
    Config,
    Environment,
    EventLogSource,
    LogLevel,
    UnknownUserEvents,
    VelocityBackend,
    get_config,
    reset_config,
)

__all__ = [
    "Config",
    "Environment",
    "EventLogSource",
    "LogLevel",
    "UnknownUserEvents",
    "VelocityBackend",
    "get_config",
    "reset_config",
]
