"""Logging, configuration and error handling utilities."""

from seasonal_clusters.utils.config_manager import ConfigManager
from seasonal_clusters.utils.logging_config import setup_logging

__all__ = ["ConfigManager", "setup_logging"]
