"""
Collection configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PlatformConfig:
    """
    One platform entry from the JSON platform table.
    """

    platform_id: str
    display_name: str
    patterns: list[str]
    selectors: dict[str, list[str]] = field(default_factory=dict)
    region: str | None = None
    enabled: bool = True


@dataclass(frozen=True)
class CollectorSettings:
    """
    Runtime settings for batch product collection.
    """

    platform_config_path: str | None = None
    load_timeout_seconds: float = 15.0
    settle_seconds: float = 1.0
    job_delay_seconds: float = 3.0
    workers: int = 1
    rate_limit_per_host: bool = False
    extraction_timeout_seconds: float | None = None
    browser: str = "playwright"
    headless: bool = True
    user_agent: str | None = None
    navigation_timeout_seconds: float = 30.0
    disabled_platforms: frozenset[str] = frozenset()
    http_timeout_seconds: float = 15.0
    http_max_retries: int = 3
    http_backoff_initial_seconds: float = 0.5
    http_backoff_multiplier: float = 2.0
