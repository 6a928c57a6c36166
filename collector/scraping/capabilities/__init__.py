"""
Extraction capability exports.
"""

from collector.scraping.capabilities.base import CapabilityFactory, ExtractionCapability, PageHandle
from collector.scraping.capabilities.platform_capability import (
    PLATFORM_SELECTORS,
    generic_capability_factory,
    selector_capability_factory,
)
from collector.scraping.capabilities.selector_capability import GenericCapability, SelectorCapability

__all__ = [
    "PLATFORM_SELECTORS",
    "CapabilityFactory",
    "ExtractionCapability",
    "GenericCapability",
    "PageHandle",
    "SelectorCapability",
    "generic_capability_factory",
    "selector_capability_factory",
]
