"""
Platform detection and extraction capability registry.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace

from collector.scraping.capabilities import (
    CapabilityFactory,
    ExtractionCapability,
    generic_capability_factory,
    selector_capability_factory,
)
from collector.scraping.config.loader import load_platform_configs
from collector.scraping.config.models import CollectorSettings, PlatformConfig
from collector.scraping.errors import PlatformDisabledError
from collector.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

GENERIC_PLATFORM = "generic"


class PlatformRegion:
    KOREA = "korea"
    CHINA = "china"


@dataclass(frozen=True)
class PlatformDefinition:
    """
    One row of the ordered detection table.
    """

    platform_id: str
    display_name: str
    patterns: tuple[re.Pattern[str], ...]
    region: str | None = None

    @classmethod
    def from_patterns(
        cls,
        *,
        platform_id: str,
        display_name: str,
        patterns: Iterable[str],
        region: str | None = None,
    ) -> PlatformDefinition:
        return cls(
            platform_id=platform_id.strip().lower(),
            display_name=display_name,
            patterns=tuple(re.compile(pattern) for pattern in patterns),
            region=region,
        )

    def matches(self, locator: str) -> bool:
        return any(pattern.search(locator) for pattern in self.patterns)


@dataclass(frozen=True)
class Dispatch:
    platform_id: str
    capability: ExtractionCapability
    degraded: bool = False


# Declaration order is the tie-break when several rows match one locator.
BUILTIN_PLATFORMS: tuple[PlatformDefinition, ...] = (
    PlatformDefinition.from_patterns(
        platform_id="naver",
        display_name="Naver Smart Store",
        region=PlatformRegion.KOREA,
        patterns=(
            r"smartstore\.naver\.com/.*/products/",
            r"shopping\.naver\.com/.*/products/",
            r"search\.shopping\.naver\.com/search",
        ),
    ),
    PlatformDefinition.from_patterns(
        platform_id="coupang",
        display_name="Coupang",
        region=PlatformRegion.KOREA,
        patterns=(
            r"www\.coupang\.com/vp/products/",
            r"www\.coupang\.com/np/products/",
            r"www\.coupang\.com/np/search",
        ),
    ),
    PlatformDefinition.from_patterns(
        platform_id="gmarket",
        display_name="Gmarket",
        region=PlatformRegion.KOREA,
        patterns=(
            r"item\.gmarket\.co\.kr",
            r"www\.gmarket\.co\.kr/item",
            r"browse\.gmarket\.co\.kr/search",
        ),
    ),
    PlatformDefinition.from_patterns(
        platform_id="auction",
        display_name="Auction",
        region=PlatformRegion.KOREA,
        patterns=(
            r"itempage3\.auction\.co\.kr",
            r"www\.auction\.co\.kr/item",
            r"browse\.auction\.co\.kr/search",
        ),
    ),
    PlatformDefinition.from_patterns(
        platform_id="11st",
        display_name="11st",
        region=PlatformRegion.KOREA,
        patterns=(
            r"www\.11st\.co\.kr/products/",
            r"m\.11st\.co\.kr/products/",
            r"search\.11st\.co\.kr/Search",
        ),
    ),
    PlatformDefinition.from_patterns(
        platform_id="aliexpress",
        display_name="AliExpress",
        region=PlatformRegion.CHINA,
        patterns=(
            r"www\.aliexpress\.com/item/",
            r".*\.aliexpress\.com/item/",
            r"www\.aliexpress\.com/wholesale",
        ),
    ),
    PlatformDefinition.from_patterns(
        platform_id="1688",
        display_name="1688",
        region=PlatformRegion.CHINA,
        patterns=(
            r"detail\.1688\.com/offer/",
            r".*\.1688\.com/offer/",
            r"s\.1688\.com/selloffer/offer_search",
        ),
    ),
    PlatformDefinition.from_patterns(
        platform_id="taobao",
        display_name="Taobao",
        region=PlatformRegion.CHINA,
        patterns=(
            r"item\.taobao\.com/item\.htm",
            r"detail\.tmall\.com/item\.htm",
            r"world\.taobao\.com/item/",
            r"world\.taobao\.com/item\.htm",
            r"s\.taobao\.com/search",
        ),
    ),
)


class PlatformRegistry:
    """
    Ordered platform table plus capability factories keyed by platform id.

    Detection walks the table in order and falls back to `generic`. Resolution
    never fails for an unknown or unregistered platform: it degrades to the
    generic capability instead.
    """

    def __init__(
        self,
        definitions: Iterable[PlatformDefinition] | None = None,
        *,
        registrations: Mapping[str, CapabilityFactory] | None = None,
        disabled_platforms: Iterable[str] = (),
        generic_factory: CapabilityFactory = generic_capability_factory,
    ) -> None:
        self._definitions: list[PlatformDefinition] = list(
            BUILTIN_PLATFORMS if definitions is None else definitions
        )
        self._registrations: dict[str, CapabilityFactory] = {}
        if definitions is None:
            for definition in BUILTIN_PLATFORMS:
                self._registrations[definition.platform_id] = selector_capability_factory(
                    definition.platform_id
                )
        if registrations:
            for platform_id, factory in registrations.items():
                self.register(platform_id, factory)
        self._disabled = {item.strip().lower() for item in disabled_platforms if item.strip()}
        self._generic_factory = generic_factory

    @classmethod
    def from_configs(
        cls,
        configs: Iterable[PlatformConfig],
        *,
        disabled_platforms: Iterable[str] = (),
    ) -> PlatformRegistry:
        """
        Build the built-in registry extended with JSON-configured platforms.

        A config entry for a known platform adds its selectors and patterns to
        the built-in row; an unknown id is appended to the end of the table.
        """

        registry = cls(disabled_platforms=disabled_platforms)
        for config in configs:
            registry.apply_config(config)
        return registry

    def apply_config(self, config: PlatformConfig) -> None:
        existing = self.definition(config.platform_id)
        if existing is None:
            self.add_platform(
                PlatformDefinition.from_patterns(
                    platform_id=config.platform_id,
                    display_name=config.display_name,
                    patterns=config.patterns,
                    region=config.region,
                )
            )
        else:
            extra_patterns = tuple(re.compile(pattern) for pattern in config.patterns)
            self._replace_definition(
                replace(
                    existing,
                    patterns=existing.patterns + extra_patterns,
                    region=config.region or existing.region,
                )
            )
        self.register(
            config.platform_id,
            selector_capability_factory(config.platform_id, config.selectors),
        )
        if not config.enabled:
            self._disabled.add(config.platform_id)

    def register(self, platform_id: str, factory: CapabilityFactory) -> None:
        self._registrations[platform_id.strip().lower()] = factory

    def add_platform(self, definition: PlatformDefinition, *, before: str | None = None) -> None:
        """
        Append `definition` to the detection table, or insert it ahead of the
        row for `before`.
        """

        if self.definition(definition.platform_id) is not None:
            raise ValueError(f"Platform '{definition.platform_id}' is already defined.")
        if before is None:
            self._definitions.append(definition)
            return
        for index, current in enumerate(self._definitions):
            if current.platform_id == before:
                self._definitions.insert(index, definition)
                return
        raise ValueError(f"Unknown platform '{before}' for insertion point.")

    def definition(self, platform_id: str) -> PlatformDefinition | None:
        normalized = platform_id.strip().lower()
        for definition in self._definitions:
            if definition.platform_id == normalized:
                return definition
        return None

    def detect(self, locator: str) -> str:
        for definition in self._definitions:
            if definition.matches(locator):
                return definition.platform_id
        return GENERIC_PLATFORM

    def resolve(self, locator: str) -> Dispatch:
        """
        Pick the capability for `locator`.

        Raises `PlatformDisabledError` only when the detected platform is
        disabled in settings.
        """

        platform_id = self.detect(locator)
        if platform_id in self._disabled:
            raise PlatformDisabledError(
                f"Platform '{platform_id}' is disabled.",
                locator=locator,
            )

        factory = self._registrations.get(platform_id)
        if factory is not None:
            return Dispatch(platform_id=platform_id, capability=factory())

        log_event(
            logger,
            logging.INFO,
            "dispatch_degraded",
            locator=locator,
            platform=platform_id,
        )
        return Dispatch(
            platform_id=platform_id,
            capability=self._generic_factory(),
            degraded=True,
        )

    def display_name(self, platform_id: str) -> str:
        if platform_id == GENERIC_PLATFORM:
            return "Generic"
        definition = self.definition(platform_id)
        return definition.display_name if definition is not None else platform_id

    def region(self, platform_id: str) -> str | None:
        definition = self.definition(platform_id)
        return definition.region if definition is not None else None

    def supported_platforms(self) -> list[str]:
        return [
            definition.platform_id
            for definition in self._definitions
            if definition.platform_id in self._registrations
        ]

    def is_supported(self, platform_id: str) -> bool:
        return platform_id.strip().lower() in self.supported_platforms()

    def is_disabled(self, platform_id: str) -> bool:
        return platform_id.strip().lower() in self._disabled

    def _replace_definition(self, definition: PlatformDefinition) -> None:
        for index, current in enumerate(self._definitions):
            if current.platform_id == definition.platform_id:
                self._definitions[index] = definition
                return


def build_platform_registry(settings: CollectorSettings) -> PlatformRegistry:
    """
    Built-in registry extended with the JSON platform table, when configured.
    """

    configs: list[PlatformConfig] = []
    if settings.platform_config_path:
        configs = load_platform_configs(config_path=settings.platform_config_path)
    return PlatformRegistry.from_configs(
        configs,
        disabled_platforms=settings.disabled_platforms,
    )
