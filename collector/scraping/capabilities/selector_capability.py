"""
Selector-driven extraction capability.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from bs4 import BeautifulSoup

from collector.domain.products import ExtractionResult
from collector.scraping.capabilities.base import ExtractionCapability, PageHandle
from collector.scraping.errors import ExtractionError
from collector.scraping.parsing import HTMLParsingLayer, parse_price

SELECTOR_FIELDS = ("name", "price", "images", "stock", "description", "category", "options")


class SelectorCapability(ExtractionCapability):
    """
    Capability that relies on per-field CSS selectors, with metadata fallbacks
    for every field.
    """

    DEFAULT_SELECTORS: dict[str, list[str]] = {}

    def __init__(self, selectors: Mapping[str, Sequence[str]] | None = None) -> None:
        self._selectors: dict[str, list[str]] = {
            key.strip().lower(): [item for item in values if item]
            for key, values in (selectors or {}).items()
        }

    def selectors_for(self, field_name: str) -> list[str]:
        normalized = field_name.strip().lower()
        configured = self._selectors.get(normalized, [])
        fallback = self.DEFAULT_SELECTORS.get(normalized, [])
        return [*configured, *(item for item in fallback if item not in configured)]

    async def extract(
        self,
        page: PageHandle,
        *,
        locator: str,
        platform: str,
    ) -> ExtractionResult:
        html = await page.content()
        soup = BeautifulSoup(html, "html.parser")
        return self.parse_document(
            soup=soup,
            locator=locator,
            platform=platform,
            page_url=page.url or locator,
        )

    def parse_document(
        self,
        *,
        soup: BeautifulSoup,
        locator: str,
        platform: str,
        page_url: str,
    ) -> ExtractionResult:
        name = HTMLParsingLayer.extract_name(soup=soup, selectors=self.selectors_for("name"))
        page_price = HTMLParsingLayer.extract_price(soup=soup, selectors=self.selectors_for("price"))
        options = HTMLParsingLayer.extract_options(soup=soup, selectors=self.selectors_for("options"))
        price = _lowest_price(page_price, options)
        if not name and price is None:
            raise ExtractionError("No product name or price found on page.", locator=locator)

        stock = HTMLParsingLayer.extract_stock(
            soup=soup,
            selectors=self.selectors_for("stock"),
            price=price,
        )
        if not options:
            options = [
                {
                    "name": "default",
                    "values": [{"value": "single", "price": price, "stock": stock}],
                }
            ]

        return ExtractionResult(
            locator=locator,
            platform=platform,
            name=name,
            price=price,
            images=HTMLParsingLayer.extract_images(
                soup=soup,
                selectors=self.selectors_for("images"),
                page_url=page_url,
            ),
            options=options,
            description=HTMLParsingLayer.extract_description(
                soup=soup,
                selectors=self.selectors_for("description"),
            ),
            stock=stock,
            category=HTMLParsingLayer.extract_category(
                soup=soup,
                selectors=self.selectors_for("category"),
            ),
            collected_at=datetime.now(timezone.utc),
            currency=HTMLParsingLayer.extract_currency(soup=soup),
            videos=HTMLParsingLayer.extract_videos(soup=soup, page_url=page_url),
        )


class GenericCapability(SelectorCapability):
    """
    Best-effort heuristic capability used when no platform-specific one is
    registered.
    """

    DEFAULT_SELECTORS: dict[str, list[str]] = {
        "name": ["[itemprop='name']"],
        "price": ["[itemprop='price']", "[class*='sale-price']", "[class*='current-price']"],
        "images": ["[itemprop='image']"],
        "description": ["[itemprop='description']"],
        "category": ["nav[aria-label='breadcrumb']", ".breadcrumb"],
        "options": ["select[name*='option']"],
    }


def _lowest_price(page_price: float | None, options: list[dict[str, Any]]) -> float | None:
    option_prices: list[float] = []
    for group in options:
        for value in group.get("values", []):
            price = parse_price(value.get("price"))
            if price is not None:
                option_prices.append(price)

    if not option_prices:
        return page_price
    lowest = min(option_prices)
    if page_price is None or lowest < page_price:
        return lowest
    return page_price
