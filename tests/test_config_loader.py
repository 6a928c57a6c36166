"""
tests/test_config_loader.py

Tests for environment-driven collector settings and the platform config file.

Coverage
--------
- Defaults when no COLLECTOR_* variable is set
- Parsing, clamping and fallback on bad values
- Disabled platform list and browser selection
- Platform config JSON: selectors, patterns, disabled entries, bad input
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from collector.scraping.config import get_collector_settings, load_platform_configs


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith("COLLECTOR_"):
            monkeypatch.delenv(name, raising=False)
    get_collector_settings.cache_clear()
    yield
    get_collector_settings.cache_clear()


# ---------------------------------------------------------------------------
# get_collector_settings
# ---------------------------------------------------------------------------


class TestCollectorSettings:
    def test_defaults(self) -> None:
        settings = get_collector_settings()

        assert settings.platform_config_path is None
        assert settings.load_timeout_seconds == 15.0
        assert settings.settle_seconds == 1.0
        assert settings.job_delay_seconds == 3.0
        assert settings.workers == 1
        assert settings.rate_limit_per_host is False
        assert settings.extraction_timeout_seconds is None
        assert settings.browser == "playwright"
        assert settings.headless is True
        assert settings.disabled_platforms == frozenset()
        assert settings.http_max_retries == 3

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLLECTOR_JOB_DELAY_SECONDS", "0.5")
        monkeypatch.setenv("COLLECTOR_WORKERS", "4")
        monkeypatch.setenv("COLLECTOR_RATE_LIMIT_PER_HOST", "yes")
        monkeypatch.setenv("COLLECTOR_EXTRACTION_TIMEOUT_SECONDS", "20")
        monkeypatch.setenv("COLLECTOR_BROWSER", "HTTP")
        monkeypatch.setenv("COLLECTOR_HEADLESS", "false")
        monkeypatch.setenv("COLLECTOR_USER_AGENT", "  collector-test/1.0 ")
        monkeypatch.setenv("COLLECTOR_DISABLED_PLATFORMS", "Taobao, 1688,,")

        settings = get_collector_settings()

        assert settings.job_delay_seconds == 0.5
        assert settings.workers == 4
        assert settings.rate_limit_per_host is True
        assert settings.extraction_timeout_seconds == 20.0
        assert settings.browser == "http"
        assert settings.headless is False
        assert settings.user_agent == "collector-test/1.0"
        assert settings.disabled_platforms == frozenset({"taobao", "1688"})

    def test_clamps_and_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLLECTOR_JOB_DELAY_SECONDS", "-2")
        monkeypatch.setenv("COLLECTOR_WORKERS", "0")
        monkeypatch.setenv("COLLECTOR_LOAD_TIMEOUT_SECONDS", "abc")
        monkeypatch.setenv("COLLECTOR_EXTRACTION_TIMEOUT_SECONDS", "0")
        monkeypatch.setenv("COLLECTOR_BROWSER", "netscape")
        monkeypatch.setenv("COLLECTOR_HTTP_MAX_RETRIES", "-1")

        settings = get_collector_settings()

        assert settings.job_delay_seconds == 0.0
        assert settings.workers == 1
        assert settings.load_timeout_seconds == 15.0
        assert settings.extraction_timeout_seconds is None
        assert settings.browser == "playwright"
        assert settings.http_max_retries == 0

    def test_relative_config_path_is_resolved(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLLECTOR_PLATFORM_CONFIG_PATH", "config/platforms.json")

        path = Path(get_collector_settings().platform_config_path)

        assert path.is_absolute()
        assert path.parts[-2:] == ("config", "platforms.json")

    def test_settings_are_cached(self) -> None:
        assert get_collector_settings() is get_collector_settings()


# ---------------------------------------------------------------------------
# load_platform_configs
# ---------------------------------------------------------------------------


def _write(tmp_path: Path, payload: object) -> str:
    path = tmp_path / "platforms.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


class TestLoadPlatformConfigs:
    def test_parses_entries(self, tmp_path: Path) -> None:
        config_path = _write(
            tmp_path,
            {
                "platforms": [
                    {
                        "id": " MyShop ",
                        "name": "My Shop",
                        "region": "korea",
                        "patterns": "myshop\\.co\\.kr",
                        "selectors": {"Name": ".title", "price": [".price", "", 3]},
                    },
                    {"id": "coupang", "enabled": "false"},
                    {"name": "missing id"},
                    "not-an-object",
                ]
            },
        )

        configs = load_platform_configs(config_path=config_path)

        assert [config.platform_id for config in configs] == ["myshop", "coupang"]
        shop, coupang = configs
        assert shop.display_name == "My Shop"
        assert shop.region == "korea"
        assert shop.patterns == ["myshop\\.co\\.kr"]
        assert shop.selectors == {"name": [".title"], "price": [".price"]}
        assert shop.enabled is True
        assert coupang.display_name == "coupang"
        assert coupang.patterns == []
        assert coupang.enabled is False

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_platform_configs(config_path=str(tmp_path / "absent.json"))

    @pytest.mark.parametrize("payload", [[], {"platforms": {"id": "x"}}])
    def test_invalid_format(self, tmp_path: Path, payload: object) -> None:
        with pytest.raises(ValueError):
            load_platform_configs(config_path=_write(tmp_path, payload))
