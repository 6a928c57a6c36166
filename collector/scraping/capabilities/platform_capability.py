"""
Built-in selector tables for supported e-commerce platforms.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from collector.scraping.capabilities.base import CapabilityFactory
from collector.scraping.capabilities.selector_capability import GenericCapability, SelectorCapability

PLATFORM_SELECTORS: dict[str, dict[str, list[str]]] = {
    "naver": {
        "name": [
            ".se-module.se-module-text h3",
            "._22kNQuEXmb h1",
            "#content .detailInfoWrapper h3",
        ],
        "price": [
            "._1LY7DqCnwR",
            ".lowestPrice em",
            "#content .price_area strong",
            ".price_area strong.price",
            ".product_price .price",
            "strong.price",
        ],
        "images": [".se-component-image img", "._2X57Mx4z8B img", ".img_area img"],
        "stock": [".stock_area"],
        "description": [".se-main-container", "._productTableWrap", ".productDescription"],
        "category": [".category_path", "#categoryPath"],
    },
    "coupang": {
        "name": [".prod-buy-header__title", "h1.prod-buy-header__title", ".product-title h1"],
        "price": [
            ".total-price strong",
            ".price-value",
            ".prod-sale-price",
            ".prod-price .total-price",
            ".prod-price .price-val",
            "span.total-price",
            "strong.price-value",
        ],
        "images": [".prod-image__main img", ".product-image-slider img"],
        "stock": [".prod-soldout-message", ".out-of-stock"],
        "description": [".prod-description", "#prod-description"],
        "category": [".breadcrumb", ".prod-breadcrumb"],
        "options": [".prod-option__item select", "select[name*='option']"],
    },
    "gmarket": {
        "name": [".itemtit", ".item_tit", "h1.itemtit"],
        "price": [
            ".price_innerwrap .price strong",
            ".price_real",
            "strong.price",
            ".item-topinfo_price strong",
            ".price_info .price strong",
        ],
        "images": [".item_photo_view img", ".thumb_image img"],
        "stock": [".soldout-layer", ".item-soldout"],
        "description": [".item_section", ".item_info_section"],
        "category": [".item-topinfo_path", ".breadcrumb"],
    },
    "auction": {
        "name": [".itemtit", ".prod_title"],
        "price": [
            ".price_real",
            ".price strong",
            "strong.price",
            ".now_price strong",
            ".item_topinfo_price strong",
        ],
        "images": [".item_photo_view img", ".thumb_image img"],
        "stock": [".soldout-layer", ".item-soldout"],
        "description": [".item_section", ".prod_detail"],
        "category": [".item-topinfo_path", ".category_path"],
    },
    "11st": {
        "name": [".info_tit", ".c_prd_tit h1"],
        "price": [
            ".selling_price",
            ".price_detail strong",
            "strong.price",
            ".c_prd_price strong",
            ".final_price",
            ".price_wrap strong",
        ],
        "images": [".img_prd img", ".slick-slide img"],
        "stock": [".sold_out", ".c_stock_out"],
        "description": [".c_product_info", ".goods_info_detail"],
        "category": [".c_location", ".s_location"],
    },
    "aliexpress": {
        "name": [".product-title-text", "h1[data-pl='product-title']"],
        "price": [
            ".product-price-value",
            "[class*='price--currentPriceText']",
            ".product-price .price-current",
            ".uniform-banner-box-price",
            "span[itemprop='price']",
            ".sku-price",
            "[class*='price-kr--current']",
        ],
        "images": [".images-view-item img", ".magnifier-image"],
        "stock": [".product-quantity-tip", ".quantity--stock"],
        "description": [".product-description", ".detail-desc-decorate-richtext"],
        "category": [".breadcrumb", "nav[aria-label='breadcrumb']"],
    },
    "1688": {
        "name": [".d-title", ".detail-title h1"],
        "price": [".price-original", ".price-now"],
        "images": [".vertical-img img", ".main-image img"],
        "stock": [".amount-box", ".quantity-info"],
        "description": [".detail-desc", ".description-content"],
        "category": [".breadcrumb", ".location-info"],
    },
    "taobao": {
        "name": [".tb-main-title", "[class*='ItemHeader--title']", "h1"],
        "price": [".tb-rmb-num", "[class*='Price--priceText']", ".price"],
        "images": ["#J_ImgBooth", ".tb-booth img", "[class*='Image--mainImage']"],
        "stock": [".tb-amount", "[class*='Stock--stock']"],
        "description": ["#description", ".tb-detail", "[class*='Desc--desc']"],
        "category": [".breadcrumb"],
    },
}


def selector_capability_factory(
    platform_id: str,
    extra_selectors: Mapping[str, Sequence[str]] | None = None,
) -> CapabilityFactory:
    """
    Build a factory for `platform_id` combining configured selectors with the
    built-in table. Configured selectors are tried first.
    """

    builtin = PLATFORM_SELECTORS.get(platform_id, {})
    merged: dict[str, list[str]] = {}
    for source in (extra_selectors or {}, builtin):
        for key, values in source.items():
            bucket = merged.setdefault(key.strip().lower(), [])
            bucket.extend(value for value in values if value not in bucket)

    def factory() -> SelectorCapability:
        return SelectorCapability(merged)

    return factory


def generic_capability_factory() -> GenericCapability:
    return GenericCapability()
