"""Infrastructure layer for agentdeck."""

from agentdeck.infrastructure.config import Config, ConfigManager
from agentdeck.infrastructure.database import Database
from agentdeck.infrastructure.logger import get_logger, setup_logging

__all__ = [
    "Config",
    "ConfigManager",
    "Database",
    "get_logger",
    "setup_logging",
]
