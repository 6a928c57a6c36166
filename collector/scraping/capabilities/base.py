"""
Extraction capability abstraction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Protocol

from collector.domain.products import ExtractionResult


class PageHandle(Protocol):
    """
    Loaded page exposed to extraction capabilities.
    """

    @property
    def url(self) -> str: ...

    async def content(self) -> str: ...


class ExtractionCapability(ABC):
    """
    Turns one ready page into a product record, or raises.

    Implementations never open or close pages; the lifecycle manager owns the
    context around the call.
    """

    @abstractmethod
    async def extract(
        self,
        page: PageHandle,
        *,
        locator: str,
        platform: str,
    ) -> ExtractionResult:
        """
        Extract product fields from `page`.
        """


CapabilityFactory = Callable[[], ExtractionCapability]
