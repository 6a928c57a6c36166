"""
Locator (product page URL) normalization.

Two locators that normalize to the same string identify the same product.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

TRACKING_PARAMETERS = frozenset(
    {
        "spm",
        "scm",
        "_t",
        "NaPm",
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "wf_ingo",
        "wf_cwb",
        "bs_code",
        "pvid",
        "algo_exp_id",
        "algo_pvid",
    }
)
_ALLOWED_SCHEMES = {"http", "https"}
# Query bytes pass through latin-1 so non-UTF-8 escapes (EUC-KR, GBK) survive.
_QUERY_ENCODING = "latin-1"
_QUERY_SAFE = "%&=+;/?:@,$!*'()~"


def is_valid_locator(locator: object) -> bool:
    """
    Return whether `locator` is an absolute http(s) URL with a host.
    """

    if not isinstance(locator, str) or not locator.strip():
        return False
    try:
        parts = urlsplit(locator.strip())
    except ValueError:
        return False
    return parts.scheme.lower() in _ALLOWED_SCHEMES and bool(parts.hostname)


def normalize_locator(locator: str) -> str:
    """
    Strip tracking parameters and the fragment, sort the query, lowercase
    scheme and host. Unparseable input falls back to the query-less prefix.
    """

    if not locator:
        return ""

    raw = locator.strip()
    if not is_valid_locator(raw):
        return raw.split("?", 1)[0].split("#", 1)[0]

    parts = urlsplit(raw)
    query = [
        (key, value)
        for key, value in parse_qsl(
            quote(parts.query, safe=_QUERY_SAFE),
            keep_blank_values=True,
            encoding=_QUERY_ENCODING,
        )
        if key not in TRACKING_PARAMETERS
    ]
    query.sort()
    return urlunsplit(
        (
            parts.scheme.lower(),
            _normalized_netloc(parts.netloc),
            parts.path or "/",
            urlencode(query, encoding=_QUERY_ENCODING),
            "",
        )
    )


def base_locator(locator: str) -> str:
    """
    Return scheme, host and path with the query string removed.
    """

    if not locator:
        return ""
    if not is_valid_locator(locator):
        return locator.strip().split("?", 1)[0].split("#", 1)[0]
    parts = urlsplit(locator.strip())
    return urlunsplit((parts.scheme.lower(), _normalized_netloc(parts.netloc), parts.path or "/", "", ""))


def locator_host(locator: str) -> str:
    """
    Return the lowercase host of `locator`, or an empty string.
    """

    try:
        return (urlsplit(locator.strip()).hostname or "").lower()
    except ValueError:
        return ""


def _normalized_netloc(netloc: str) -> str:
    userinfo, at, hostport = netloc.rpartition("@")
    return f"{userinfo}{at}{hostport.lower()}"
