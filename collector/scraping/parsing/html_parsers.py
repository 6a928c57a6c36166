"""
BeautifulSoup-based parsing layer for product pages.
"""

from __future__ import annotations

import json
import re
from collections import Counter
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from collector.domain.products import StockStatus

# Currency-anchored price mentions: KRW ("12,900원"), USD ("$10.99"),
# CNY/JPY ("¥100", "100元").
BODY_PRICE_REGEX = re.compile(
    r"([0-9][0-9,]*)(?:원|\s*KW|\s*KRW)"
    r"|(?:US\s*)?\$\s?([0-9][0-9,]*\.?\d*)"
    r"|(?:CNY|JP\s*)?¥\s?([0-9][0-9,]*\.?\d*)"
    r"|([0-9][0-9,]*\.?\d*)\s*元"
)
NUMBER_REGEX = re.compile(r"\d[\d,]*(?:\.\d+)?")
OUT_OF_STOCK_MARKERS = ("품절", "sold out", "out of stock", "soldout", "缺货", "已售罄")
IN_STOCK_MARKERS = ("재고", "in stock", "available", "有货")
MAX_ELEMENTS = 300
MAX_IMAGES = 50


def parse_price(value: object) -> float | None:
    """
    Parse a display price such as "₩12,900" or "US $10.99" into a float.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None

    match = NUMBER_REGEX.search(str(value))
    if match is None:
        return None
    try:
        parsed = float(match.group(0).replace(",", ""))
    except ValueError:
        return None
    return parsed if parsed > 0 else None


class HTMLParsingLayer:
    """
    Deterministic product field extractors over a parsed HTML document.

    Every extractor tries the supplied CSS selectors first and then falls
    back to page metadata (Open Graph, schema.org microdata and JSON-LD).
    """

    @classmethod
    def extract_name(cls, *, soup: BeautifulSoup, selectors: list[str]) -> str:
        for node in cls._select_elements(soup=soup, selectors=selectors):
            text = cls._clean_text(node.get_text(" ", strip=True))
            if text:
                return text[:500]

        for product in cls.json_ld_products(soup):
            name = product.get("name")
            if isinstance(name, str) and name.strip():
                return cls._clean_text(name)[:500]

        meta_title = cls.meta_content(soup, "og:title", "twitter:title")
        if meta_title:
            return meta_title[:500]

        heading = soup.find("h1")
        if heading is not None:
            text = cls._clean_text(heading.get_text(" ", strip=True))
            if text:
                return text[:500]

        if soup.title is not None and soup.title.string:
            return cls._clean_text(soup.title.string)[:500]
        return ""

    @classmethod
    def extract_price(cls, *, soup: BeautifulSoup, selectors: list[str]) -> float | None:
        for node in cls._select_elements(soup=soup, selectors=selectors):
            price = parse_price(cls._clean_text(node.get_text(" ", strip=True)))
            if price is not None:
                return price

        for product in cls.json_ld_products(soup):
            for offer in cls._offers(product):
                price = parse_price(offer.get("price") or offer.get("lowPrice"))
                if price is not None:
                    return price

        meta_price = cls.meta_content(
            soup,
            "og:price:amount",
            "product:price:amount",
            "price",
        )
        price = parse_price(meta_price)
        if price is not None:
            return price

        return cls._price_from_body_text(soup)

    @classmethod
    def extract_currency(cls, *, soup: BeautifulSoup) -> str | None:
        for product in cls.json_ld_products(soup):
            for offer in cls._offers(product):
                currency = offer.get("priceCurrency")
                if isinstance(currency, str) and currency.strip():
                    return currency.strip().upper()

        currency = cls.meta_content(
            soup,
            "og:price:currency",
            "product:price:currency",
            "priceCurrency",
        )
        return currency.upper() if currency else None

    @classmethod
    def extract_images(
        cls,
        *,
        soup: BeautifulSoup,
        selectors: list[str],
        page_url: str,
    ) -> list[str]:
        images: list[str] = []
        for node in cls._select_elements(soup=soup, selectors=selectors):
            candidates = [node] if node.name == "img" else node.find_all("img")
            for image in candidates:
                src = image.get("src") or image.get("data-src") or image.get("data-original")
                cls._append_url(images, src, page_url)

        if not images:
            cls._append_url(images, cls.meta_content(soup, "og:image", "twitter:image"), page_url)
            for product in cls.json_ld_products(soup):
                raw = product.get("image")
                values = raw if isinstance(raw, list) else [raw]
                for value in values:
                    if isinstance(value, dict):
                        value = value.get("url")
                    cls._append_url(images, value, page_url)
        return images[:MAX_IMAGES]

    @classmethod
    def extract_videos(cls, *, soup: BeautifulSoup, page_url: str) -> list[str]:
        videos: list[str] = []
        for video in soup.find_all("video"):
            src = video.get("src")
            if not src:
                source = video.find("source")
                src = source.get("src") if source is not None else None
            absolute = urljoin(page_url, src) if isinstance(src, str) else None
            if absolute and absolute.startswith("http"):
                cls._append_url(videos, absolute, page_url)
        return videos

    @classmethod
    def extract_description(cls, *, soup: BeautifulSoup, selectors: list[str]) -> str:
        for node in cls._select_elements(soup=soup, selectors=selectors):
            text = cls._clean_text(node.get_text(" ", strip=True))
            if text:
                return text

        for product in cls.json_ld_products(soup):
            description = product.get("description")
            if isinstance(description, str) and description.strip():
                return cls._clean_text(description)

        return cls.meta_content(soup, "og:description", "description") or ""

    @classmethod
    def extract_category(cls, *, soup: BeautifulSoup, selectors: list[str]) -> str:
        for node in cls._select_elements(soup=soup, selectors=selectors):
            text = cls._clean_text(node.get_text(" > ", strip=True))
            if text:
                return text[:255]

        for product in cls.json_ld_products(soup):
            category = product.get("category")
            if isinstance(category, str) and category.strip():
                return cls._clean_text(category)[:255]
        return ""

    @classmethod
    def extract_stock(
        cls,
        *,
        soup: BeautifulSoup,
        selectors: list[str],
        price: float | None,
    ) -> str:
        for node in cls._select_elements(soup=soup, selectors=selectors):
            status = cls._stock_from_text(node.get_text(" ", strip=True))
            if status != StockStatus.UNKNOWN:
                return status

        availability = cls.meta_content(soup, "availability", "product:availability", "og:availability")
        if availability is None:
            for product in cls.json_ld_products(soup):
                for offer in cls._offers(product):
                    raw = offer.get("availability")
                    if isinstance(raw, str):
                        availability = raw
                        break
                if availability is not None:
                    break

        if availability:
            lowered = availability.lower()
            if "outofstock" in lowered or "soldout" in lowered or "out of stock" in lowered:
                return StockStatus.OUT_OF_STOCK
            if "instock" in lowered or "in stock" in lowered:
                return StockStatus.IN_STOCK

        if price is not None:
            return StockStatus.IN_STOCK
        return StockStatus.UNKNOWN

    @classmethod
    def extract_options(cls, *, soup: BeautifulSoup, selectors: list[str]) -> list[dict[str, Any]]:
        groups: list[dict[str, Any]] = []
        for select in cls._select_elements(soup=soup, selectors=selectors):
            if select.name != "select":
                continue
            values = []
            for option in select.find_all("option"):
                label = cls._clean_text(option.get_text(" ", strip=True))
                if not label or not option.get("value"):
                    continue
                values.append(
                    {
                        "value": label,
                        "price": 0,
                        "stock": (
                            StockStatus.OUT_OF_STOCK
                            if option.has_attr("disabled")
                            else StockStatus.IN_STOCK
                        ),
                    }
                )
            if values:
                name = select.get("aria-label") or select.get("name") or "option"
                groups.append({"name": str(name), "values": values})
        return groups

    @classmethod
    def json_ld_products(cls, soup: BeautifulSoup) -> list[dict[str, Any]]:
        products: list[dict[str, Any]] = []
        for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                payload = json.loads(raw)
            except ValueError:
                continue
            products.extend(cls._walk_json_ld(payload))
        return products

    @classmethod
    def meta_content(cls, soup: BeautifulSoup, *names: str) -> str | None:
        for name in names:
            for attribute in ("property", "name", "itemprop"):
                node = soup.find("meta", attrs={attribute: name})
                if node is None:
                    continue
                content = node.get("content")
                if isinstance(content, str) and content.strip():
                    return cls._clean_text(content)
        return None

    @classmethod
    def _walk_json_ld(cls, payload: object) -> list[dict[str, Any]]:
        found: list[dict[str, Any]] = []
        if isinstance(payload, list):
            for item in payload:
                found.extend(cls._walk_json_ld(item))
        elif isinstance(payload, dict):
            kind = payload.get("@type")
            kinds = kind if isinstance(kind, list) else [kind]
            if "Product" in kinds:
                found.append(payload)
            graph = payload.get("@graph")
            if graph is not None:
                found.extend(cls._walk_json_ld(graph))
        return found

    @staticmethod
    def _offers(product: dict[str, Any]) -> list[dict[str, Any]]:
        offers = product.get("offers")
        if isinstance(offers, dict):
            return [offers]
        if isinstance(offers, list):
            return [offer for offer in offers if isinstance(offer, dict)]
        return []

    @classmethod
    def _price_from_body_text(cls, soup: BeautifulSoup) -> float | None:
        body = soup.body or soup
        text = body.get_text(" ", strip=True)
        candidates: list[float] = []
        for match in BODY_PRICE_REGEX.finditer(text):
            is_krw = match.group(1) is not None
            raw = next(group for group in match.groups() if group is not None)
            try:
                value = float(raw.replace(",", ""))
            except ValueError:
                continue
            if is_krw and 100 <= value < 50_000_000:
                candidates.append(value)
            elif not is_krw and 0.01 <= value < 100_000:
                candidates.append(value)
            if len(candidates) >= 10:
                break

        if not candidates:
            return None
        # Most frequent of the first candidates; ties resolve to the earliest.
        counts = Counter(candidates)
        best = max(counts.values())
        return next(value for value in candidates if counts[value] == best)

    @staticmethod
    def _stock_from_text(value: str) -> str:
        lowered = value.lower()
        if any(marker in lowered for marker in OUT_OF_STOCK_MARKERS):
            return StockStatus.OUT_OF_STOCK
        if any(marker in lowered for marker in IN_STOCK_MARKERS):
            return StockStatus.IN_STOCK
        return StockStatus.UNKNOWN

    @classmethod
    def _select_elements(
        cls,
        *,
        soup: BeautifulSoup,
        selectors: list[str],
    ) -> list[Tag]:
        found: list[Tag] = []
        seen: set[int] = set()
        for selector in selectors:
            for node in soup.select(selector):
                if id(node) in seen:
                    continue
                seen.add(id(node))
                found.append(node)
        return found[:MAX_ELEMENTS]

    @staticmethod
    def _append_url(urls: list[str], value: object, page_url: str) -> None:
        if not isinstance(value, str) or not value.strip():
            return
        absolute = urljoin(page_url, value.strip())
        if absolute.startswith("data:"):
            return
        if absolute not in urls:
            urls.append(absolute)

    @staticmethod
    def _clean_text(value: str) -> str:
        return re.sub(r"\s+", " ", value).strip()
