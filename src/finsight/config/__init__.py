"""Configuration module."""
from .manager import ApiConfig, ConfigManager
from .settings import AppSettings

__all__ = ["ApiConfig", "ConfigManager", "AppSettings"]
