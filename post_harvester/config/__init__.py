"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import AppConfig, ScraperConfig, ServerConfig, StorageConfig, parse_duration

__all__ = [
    "AppConfig",
    "ConfigLocator",
    "ConfigRepository",
    "ScraperConfig",
    "ServerConfig",
    "StorageConfig",
    "parse_duration",
]
