"""Common utilities - logging, config, exceptions."""

from riskgate.common.logging import get_logger
from riskgate.common.config import Config, get_config, reset_config
from riskgate.common.exceptions import (
    RiskGateException,
    ConfigurationError,
    ValidationError,
    NotFoundError,
    CollaboratorUnavailableError,
    HistoryUnavailableError,
)

__all__ = [
    # Logging
    "get_logger",
    # Config
    "Config",
    "get_config",
    "reset_config",
    # Exceptions
    "RiskGateException",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "CollaboratorUnavailableError",
    "HistoryUnavailableError",
]
