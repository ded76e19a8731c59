"""
Infrastructure module - settings and logging.
"""

from .logging_config import setup_logging
from .settings import Settings, get_settings

__all__ = ["setup_logging", "Settings", "get_settings"]
