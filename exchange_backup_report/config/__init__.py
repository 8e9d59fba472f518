"""Configuration management for the backup report."""

from .config_manager import ConfigManager
from .config_validator import ConfigValidator
from .configuration import Configuration

__all__ = ["ConfigManager", "ConfigValidator", "Configuration"]
