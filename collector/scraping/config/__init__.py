"""
Config helpers for product collection.
"""

from collector.scraping.config.loader import get_collector_settings, load_platform_configs
from collector.scraping.config.models import CollectorSettings, PlatformConfig

__all__ = [
    "CollectorSettings",
    "PlatformConfig",
    "get_collector_settings",
    "load_platform_configs",
]
