"""
Configuration and logging shared by the whole package.
"""
from .config import Settings, settings
from .logging_config import configure_logging, get_logger

__all__ = [
    "Settings",
    "settings",
    "configure_logging",
    "get_logger",
]
