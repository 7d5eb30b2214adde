"""
Keyword search results page parser.

Search results use the same app-card markup as category pages. Organic
results are numbered from `position_offset + 1` so that later pages
continue the count; ads and built-in features carry no position.
"""
import re
from typing import List, Optional

from bs4 import BeautifulSoup
from loguru import logger

from listing_intel.config import BASE_URL
from listing_intel.models import FirstPageApp, SearchPageData
from listing_intel.parsers.category_parser import (
    APP_CARD_SELECTOR,
    card_description,
    card_pricing_hint,
    extract_rating_from_text,
)
from listing_intel.parsers.field_extraction import FieldExtractor

BUILT_IN_PREFIX = "bif:"
SEARCH_AD_SURFACE = "surface_type=search_ad"

TOTAL_RESULTS_PATTERNS = [
    re.compile(r"(\d[\d,]*)\s+results?\s+for", re.I),
    re.compile(r"(\d[\d,]*)\s+apps?\b", re.I),
]


def parse_search_page(
    html: str,
    keyword: str,
    current_page: int = 1,
    position_offset: int = 0,
) -> SearchPageData:
    """
    Parse one page of search results for a keyword.

    Args:
        html (str): Raw markup of the search results page.
        keyword (str): The searched keyword.
        current_page (int): 1-based page number of this page.
        position_offset (int): Organic results already seen on earlier pages.

    Returns:
        SearchPageData: Listings in page order (ads and built-ins included),
                        total result count and pagination flag.
    """
    soup = BeautifulSoup(html, "html.parser")
    fields = FieldExtractor(keyword)

    apps = fields.extract("searchAppCards", lambda: _parse_search_cards(soup, position_offset), [])
    if not apps:
        logger.warning(f"No apps found in search results for '{keyword}', the page structure may have changed")

    record = SearchPageData(
        keyword=keyword,
        total_results=fields.extract(
            "totalResults",
            lambda: _parse_total_results(soup),
            None,
            validate=lambda v: v >= 0,
        ),
        apps=apps,
        has_next_page=fields.extract("hasNextPage", lambda: _has_next_page(soup, current_page), False),
        current_page=current_page,
    )
    record.parse_warnings = fields.diagnostics
    return record


def _parse_total_results(soup: BeautifulSoup) -> Optional[int]:
    text = soup.get_text(" ")
    for pattern in TOTAL_RESULTS_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1).replace(",", ""))
    return None


def _has_next_page(soup: BeautifulSoup, current_page: int) -> bool:
    if soup.select_one('a[rel="next"]') is not None:
        return True
    return soup.select_one(f'a[href*="page={current_page + 1}"]') is not None


def _parse_search_cards(soup: BeautifulSoup, position_offset: int) -> List[FirstPageApp]:
    apps: List[FirstPageApp] = []
    seen = set()
    position = position_offset

    for card in soup.select(APP_CARD_SELECTOR):
        app_slug = card.get("data-app-card-handle-value") or ""
        name = (card.get("data-app-card-name-value") or "").strip()
        if not app_slug or not name or app_slug in seen:
            continue
        seen.add(app_slug)

        app_link = card.get("data-app-card-app-link-value") or ""
        is_built_in = app_slug.startswith(BUILT_IN_PREFIX)
        is_sponsored = not is_built_in and SEARCH_AD_SURFACE in app_link
        organic = not is_sponsored and not is_built_in
        if organic:
            position += 1

        if is_built_in:
            app_url = f"{BASE_URL}/built-in-features/{app_slug[len(BUILT_IN_PREFIX):]}"
        else:
            app_url = f"{BASE_URL}/{app_slug}"

        rating, count = extract_rating_from_text(card.get_text(" "))
        apps.append(FirstPageApp(
            app_slug=app_slug,
            name=name,
            short_description=card_description(card),
            average_rating=rating,
            rating_count=count,
            app_url=app_url,
            logo_url=card.get("data-app-card-icon-url-value") or "",
            position=position if organic else None,
            pricing_hint=card_pricing_hint(card) or None,
            is_sponsored=is_sponsored,
            is_built_for_shopify=card.select_one('[class*="built-for-shopify"]') is not None,
            is_built_in=is_built_in,
        ))

    return apps
