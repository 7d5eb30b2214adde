"""Listing page parsers."""
from listing_intel.parsers.app_parser import parse_app_page
from listing_intel.parsers.category_parser import (
    compute_metrics,
    has_next_page,
    parse_category_page,
    should_use_all_page,
)
from listing_intel.parsers.pricing_hint import normalize_pricing_hint
from listing_intel.parsers.search_parser import parse_search_page

__all__ = [
    "parse_app_page",
    "parse_category_page",
    "parse_search_page",
    "should_use_all_page",
    "has_next_page",
    "compute_metrics",
    "normalize_pricing_hint",
]
