"""
Parsing layer exports.
"""

from collector.scraping.parsing.html_parsers import HTMLParsingLayer, parse_price

__all__ = ["HTMLParsingLayer", "parse_price"]
