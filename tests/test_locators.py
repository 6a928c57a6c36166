"""
tests/test_locators.py

Unit tests for locator normalization helpers.

Coverage
--------
- Tracking parameter removal
- Query sorting and fragment removal
- Scheme/host lowercasing
- Idempotence
- Non-UTF-8 percent escapes keep distinct keys
- Fallback for unparseable locators
- Validation and host extraction
"""

from __future__ import annotations

import pytest

from collector.scraping.locators import (
    base_locator,
    is_valid_locator,
    locator_host,
    normalize_locator,
)


# ---------------------------------------------------------------------------
# normalize_locator
# ---------------------------------------------------------------------------


class TestNormalizeLocator:
    def test_strips_tracking_parameters(self) -> None:
        raw = "https://www.coupang.com/vp/products/123?itemId=9&utm_source=naver&spm=a1.b2&NaPm=ct%3D1"
        assert normalize_locator(raw) == "https://www.coupang.com/vp/products/123?itemId=9"

    def test_sorts_remaining_parameters(self) -> None:
        raw = "https://shop.example.com/item?b=2&a=1&c=3"
        assert normalize_locator(raw) == "https://shop.example.com/item?a=1&b=2&c=3"

    def test_drops_fragment(self) -> None:
        raw = "https://shop.example.com/item?id=1#reviews"
        assert normalize_locator(raw) == "https://shop.example.com/item?id=1"

    def test_lowercases_scheme_and_host_only(self) -> None:
        raw = "HTTPS://Shop.Example.COM/Item/ABC?Id=1"
        assert normalize_locator(raw) == "https://shop.example.com/Item/ABC?Id=1"

    def test_tracking_only_query_leaves_no_question_mark(self) -> None:
        raw = "https://item.gmarket.co.kr/Item?utm_campaign=x&pvid=abc"
        assert normalize_locator(raw) == "https://item.gmarket.co.kr/Item"

    def test_keeps_blank_values(self) -> None:
        raw = "https://shop.example.com/item?flag=&id=7"
        assert normalize_locator(raw) == "https://shop.example.com/item?flag=&id=7"

    @pytest.mark.parametrize(
        "raw",
        [
            "https://Smartstore.Naver.com/store/products/42?NaPm=abc&z=1&a=two words",
            "https://detail.1688.com/offer/1.html?spm=a&x=%2Fpath&x=a",
            "http://example.com",
            "not a url?with=query#frag",
        ],
    )
    def test_is_idempotent(self, raw: str) -> None:
        once = normalize_locator(raw)
        assert normalize_locator(once) == once

    def test_equivalent_locators_share_a_key(self) -> None:
        first = "https://www.11st.co.kr/products/55?b=2&a=1&utm_medium=cpc#top"
        second = "https://WWW.11st.co.kr/products/55?a=1&b=2"
        assert normalize_locator(first) == normalize_locator(second)

    def test_non_utf8_escapes_stay_distinct(self) -> None:
        first = normalize_locator("https://a.com/p?q=%E4")
        second = normalize_locator("https://a.com/p?q=%E5")

        assert first == "https://a.com/p?q=%E4"
        assert second == "https://a.com/p?q=%E5"

    def test_euc_kr_query_round_trips(self) -> None:
        # "한글" in EUC-KR
        raw = "https://browse.gmarket.co.kr/search?keyword=%C7%D1%B1%DB&utm_source=x"
        assert normalize_locator(raw) == "https://browse.gmarket.co.kr/search?keyword=%C7%D1%B1%DB"

    def test_literal_and_escaped_utf8_share_a_key(self) -> None:
        literal = "https://search.shopping.naver.com/search?query=한글"
        escaped = "https://search.shopping.naver.com/search?query=%ED%95%9C%EA%B8%80"
        assert normalize_locator(literal) == normalize_locator(escaped)

    def test_unparseable_locator_falls_back_to_prefix(self) -> None:
        assert normalize_locator("item-123?ref=mail#x") == "item-123"

    def test_empty_locator(self) -> None:
        assert normalize_locator("") == ""


# ---------------------------------------------------------------------------
# base_locator / validation / host
# ---------------------------------------------------------------------------


class TestLocatorHelpers:
    def test_base_locator_removes_query(self) -> None:
        assert base_locator("https://Shop.example.com/a/b?x=1#f") == "https://shop.example.com/a/b"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("https://shop.example.com/item", True),
            ("http://shop.example.com", True),
            ("ftp://shop.example.com/item", False),
            ("shop.example.com/item", False),
            ("https://", False),
            ("", False),
            (None, False),
            (42, False),
        ],
    )
    def test_is_valid_locator(self, value: object, expected: bool) -> None:
        assert is_valid_locator(value) is expected

    def test_locator_host_is_lowercase(self) -> None:
        assert locator_host("https://Item.Taobao.com/item.htm?id=1") == "item.taobao.com"

    def test_locator_host_empty_for_relative(self) -> None:
        assert locator_host("/relative/path") == ""
