"""Core module - configuration, logging, and shared base types."""

from normform.core.config import Settings, get_settings
from normform.core.logging import configure_logging, get_logger, log_context
from normform.core.models import Result

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    "get_logger",
    "log_context",
    # Models
    "Result",
]
