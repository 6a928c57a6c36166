"""
Environment + JSON config loader for product collection.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

from db.config import load_env_files

from collector.scraping.config.models import CollectorSettings, PlatformConfig

_BROWSERS = {"playwright", "http"}


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_optional_float_env(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped or None


def _get_csv_env(name: str) -> frozenset[str]:
    raw = os.getenv(name)
    if raw is None:
        return frozenset()
    return frozenset(item.strip().lower() for item in raw.split(",") if item.strip())


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _resolve_config_path(raw_path: str) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_project_root() / candidate).resolve()


@lru_cache(maxsize=1)
def get_collector_settings() -> CollectorSettings:
    """
    Return cached collection settings from environment variables.
    """

    load_env_files()
    config_path = _get_optional_str_env("COLLECTOR_PLATFORM_CONFIG_PATH")
    browser = _get_str_env("COLLECTOR_BROWSER", "playwright").lower()
    return CollectorSettings(
        platform_config_path=str(_resolve_config_path(config_path)) if config_path else None,
        load_timeout_seconds=max(
            0.1,
            _get_float_env("COLLECTOR_LOAD_TIMEOUT_SECONDS", 15.0),
        ),
        settle_seconds=max(0.0, _get_float_env("COLLECTOR_SETTLE_SECONDS", 1.0)),
        job_delay_seconds=max(0.0, _get_float_env("COLLECTOR_JOB_DELAY_SECONDS", 3.0)),
        workers=max(1, _get_int_env("COLLECTOR_WORKERS", 1)),
        rate_limit_per_host=_get_bool_env("COLLECTOR_RATE_LIMIT_PER_HOST", False),
        extraction_timeout_seconds=_get_optional_float_env("COLLECTOR_EXTRACTION_TIMEOUT_SECONDS"),
        browser=browser if browser in _BROWSERS else "playwright",
        headless=_get_bool_env("COLLECTOR_HEADLESS", True),
        user_agent=_get_optional_str_env("COLLECTOR_USER_AGENT"),
        navigation_timeout_seconds=max(
            1.0,
            _get_float_env("COLLECTOR_NAVIGATION_TIMEOUT_SECONDS", 30.0),
        ),
        disabled_platforms=_get_csv_env("COLLECTOR_DISABLED_PLATFORMS"),
        http_timeout_seconds=max(1.0, _get_float_env("COLLECTOR_HTTP_TIMEOUT_SECONDS", 15.0)),
        http_max_retries=max(0, _get_int_env("COLLECTOR_HTTP_MAX_RETRIES", 3)),
        http_backoff_initial_seconds=max(
            0.1,
            _get_float_env("COLLECTOR_HTTP_BACKOFF_INITIAL_SECONDS", 0.5),
        ),
        http_backoff_multiplier=max(
            1.0,
            _get_float_env("COLLECTOR_HTTP_BACKOFF_MULTIPLIER", 2.0),
        ),
    )


def load_platform_configs(*, config_path: str) -> list[PlatformConfig]:
    """
    Load extra platform definitions from a JSON file.
    """

    path = _resolve_config_path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Platform config file not found: {path}")

    raw_data = json.loads(path.read_text(encoding="utf-8"))
    platforms = raw_data.get("platforms", []) if isinstance(raw_data, dict) else None
    if not isinstance(platforms, list):
        raise ValueError("Invalid platform config: 'platforms' must be a list.")

    parsed: list[PlatformConfig] = []
    for entry in platforms:
        if not isinstance(entry, dict):
            continue

        platform_id = str(entry.get("id", "")).strip().lower()
        patterns = _normalize_patterns(entry.get("patterns", []))
        if not platform_id:
            continue

        parsed.append(
            PlatformConfig(
                platform_id=platform_id,
                display_name=_optional_str(entry.get("name")) or platform_id,
                patterns=patterns,
                selectors=_normalize_selectors(entry.get("selectors", {})),
                region=_optional_str(entry.get("region")),
                enabled=_optional_bool(entry.get("enabled"), True),
            )
        )

    return parsed


def _normalize_patterns(patterns: object) -> list[str]:
    if isinstance(patterns, str):
        patterns = [patterns]
    if not isinstance(patterns, list):
        return []
    return [item.strip() for item in patterns if isinstance(item, str) and item.strip()]


def _normalize_selectors(selectors: object) -> dict[str, list[str]]:
    if not isinstance(selectors, dict):
        return {}

    normalized: dict[str, list[str]] = {}
    for key, value in selectors.items():
        if not isinstance(key, str):
            continue
        if isinstance(value, str):
            selector_list = [value.strip()] if value.strip() else []
        elif isinstance(value, list):
            selector_list = [
                item.strip()
                for item in value
                if isinstance(item, str) and item.strip()
            ]
        else:
            selector_list = []
        normalized[key.strip().lower()] = selector_list
    return normalized


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _optional_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
