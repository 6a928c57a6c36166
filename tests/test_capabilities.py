"""
tests/test_capabilities.py

Tests for the selector-driven extraction capabilities and the HTML parsing
layer underneath them.

Coverage
--------
- GenericCapability on JSON-LD, Open Graph and plain body-text pages
- Platform selector tables (Coupang) including stock and options
- Configured selectors take precedence over built-in ones
- Pages without name or price raise ExtractionError
- Default single-option group
- parse_price on display strings and raw numbers
"""

from __future__ import annotations

import asyncio
import json

import pytest

from collector.domain.products import ExtractionResult, StockStatus
from collector.scraping.browser import StaticPage
from collector.scraping.capabilities import (
    GenericCapability,
    SelectorCapability,
    selector_capability_factory,
)
from collector.scraping.errors import ExtractionError
from collector.scraping.parsing import parse_price

SHOP_URL = "https://shop.example.com/item/7"
COUPANG_URL = "https://www.coupang.com/vp/products/100"


def _extract(capability, html: str, *, url: str = SHOP_URL, platform: str = "generic") -> ExtractionResult:
    page = StaticPage(url=url, html=html)
    return asyncio.run(capability.extract(page, locator=url, platform=platform))


# ---------------------------------------------------------------------------
# GenericCapability
# ---------------------------------------------------------------------------


class TestGenericCapability:
    def test_json_ld_product(self) -> None:
        payload = {
            "@context": "https://schema.org",
            "@graph": [
                {"@type": "BreadcrumbList"},
                {
                    "@type": "Product",
                    "name": "Steel Kettle",
                    "description": "1.7L stainless kettle",
                    "category": "Kitchen",
                    "image": ["/img/kettle.jpg", {"url": "/img/kettle-side.jpg"}],
                    "offers": {
                        "@type": "Offer",
                        "price": "30000",
                        "priceCurrency": "krw",
                        "availability": "https://schema.org/OutOfStock",
                    },
                },
            ],
        }
        html = (
            "<html><head><script type='application/ld+json'>"
            f"{json.dumps(payload)}"
            "</script></head><body></body></html>"
        )

        result = _extract(GenericCapability(), html)

        assert result.name == "Steel Kettle"
        assert result.price == 30000.0
        assert result.currency == "KRW"
        assert result.category == "Kitchen"
        assert result.description == "1.7L stainless kettle"
        assert result.stock == StockStatus.OUT_OF_STOCK
        assert result.images == [
            "https://shop.example.com/img/kettle.jpg",
            "https://shop.example.com/img/kettle-side.jpg",
        ]
        assert result.locator == SHOP_URL
        assert result.platform == "generic"

    def test_open_graph_metadata(self) -> None:
        html = """
        <html><head>
          <meta property="og:title" content="Travel Mug">
          <meta property="og:price:amount" content="15.99">
          <meta property="og:price:currency" content="usd">
          <meta property="og:image" content="https://cdn.example.com/mug.png">
          <meta name="description" content="Keeps coffee hot">
        </head><body></body></html>
        """

        result = _extract(GenericCapability(), html)

        assert result.name == "Travel Mug"
        assert result.price == 15.99
        assert result.currency == "USD"
        assert result.images == ["https://cdn.example.com/mug.png"]
        assert result.description == "Keeps coffee hot"
        assert result.stock == StockStatus.IN_STOCK

    def test_body_text_price_prefers_most_frequent(self) -> None:
        html = """
        <html><body>
          <h1>Cotton Towel</h1>
          <p>판매가 12,900원</p>
          <p>배송비 3,000원</p>
          <p>최종가 12,900원</p>
        </body></html>
        """

        result = _extract(GenericCapability(), html)

        assert result.name == "Cotton Towel"
        assert result.price == 12900.0

    def test_microdata_selectors(self) -> None:
        html = """
        <html><body>
          <div itemscope>
            <span itemprop="name">Desk Lamp</span>
            <span itemprop="price">₩45,000</span>
            <div itemprop="description">LED lamp</div>
          </div>
        </body></html>
        """

        result = _extract(GenericCapability(), html)

        assert (result.name, result.price, result.description) == ("Desk Lamp", 45000.0, "LED lamp")

    def test_empty_page_raises_extraction_error(self) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            _extract(GenericCapability(), "<html><body><p>Nothing here</p></body></html>")
        assert exc_info.value.locator == SHOP_URL

    def test_default_option_group_without_options(self) -> None:
        html = "<html><body><h1>Plain Item</h1><p>$9.50</p></body></html>"

        result = _extract(GenericCapability(), html)

        assert result.options == [
            {
                "name": "default",
                "values": [{"value": "single", "price": 9.5, "stock": StockStatus.IN_STOCK}],
            }
        ]

    def test_name_only_page_is_accepted(self) -> None:
        result = _extract(GenericCapability(), "<html><head><title> Only  Title </title></head></html>")

        assert result.name == "Only Title"
        assert result.price is None
        assert result.stock == StockStatus.UNKNOWN


# ---------------------------------------------------------------------------
# Platform selectors
# ---------------------------------------------------------------------------


COUPANG_HTML = """
<html><body>
  <h1 class="prod-buy-header__title">Wireless Mouse</h1>
  <span class="total-price"><strong>19,900원</strong></span>
  <div class="prod-soldout-message">품절</div>
  <div class="prod-image__main">
    <img src="/images/mouse.jpg">
    <img src="/images/mouse.jpg">
    <img src="data:image/png;base64,AAAA">
  </div>
  <video><source src="/videos/mouse.mp4"></video>
  <div class="prod-option__item">
    <select name="option1" aria-label="Color">
      <option value="">Select</option>
      <option value="b">Black</option>
      <option value="w" disabled>White</option>
    </select>
  </div>
</body></html>
"""


class TestPlatformSelectors:
    def test_coupang_fields(self) -> None:
        capability = selector_capability_factory("coupang")()

        result = _extract(capability, COUPANG_HTML, url=COUPANG_URL, platform="coupang")

        assert result.name == "Wireless Mouse"
        assert result.price == 19900.0
        assert result.stock == StockStatus.OUT_OF_STOCK
        assert result.images == ["https://www.coupang.com/images/mouse.jpg"]
        assert result.videos == ["https://www.coupang.com/videos/mouse.mp4"]
        assert result.options == [
            {
                "name": "Color",
                "values": [
                    {"value": "Black", "price": 0, "stock": StockStatus.IN_STOCK},
                    {"value": "White", "price": 0, "stock": StockStatus.OUT_OF_STOCK},
                ],
            }
        ]

    def test_configured_selectors_come_first(self) -> None:
        capability = selector_capability_factory("coupang", {"Name": [".custom-title"]})()

        assert capability.selectors_for("name")[0] == ".custom-title"
        assert ".prod-buy-header__title" in capability.selectors_for("name")

        html = COUPANG_HTML.replace(
            "<h1 class",
            "<h2 class='custom-title'>Configured Name</h2><h1 class",
        )
        result = _extract(capability, html, url=COUPANG_URL, platform="coupang")
        assert result.name == "Configured Name"

    def test_factory_returns_fresh_instances(self) -> None:
        factory = selector_capability_factory("gmarket")
        assert factory() is not factory()

    def test_unknown_platform_falls_back_to_metadata(self) -> None:
        capability = SelectorCapability()
        html = '<html><head><meta property="og:title" content="Meta Only"></head></html>'

        result = _extract(capability, html, platform="custom")
        assert result.name == "Meta Only"


# ---------------------------------------------------------------------------
# parse_price
# ---------------------------------------------------------------------------


class TestParsePrice:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("₩12,900", 12900.0),
            ("US $10.99", 10.99),
            ("¥ 1,280.50", 1280.5),
            (5, 5.0),
            (2.5, 2.5),
        ],
    )
    def test_parses_display_prices(self, raw: object, expected: float) -> None:
        assert parse_price(raw) == expected

    @pytest.mark.parametrize("raw", [None, True, 0, -3, "free", "0원", ""])
    def test_rejects_missing_or_non_positive(self, raw: object) -> None:
        assert parse_price(raw) is None
