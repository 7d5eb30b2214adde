"""
Category page parser.

App cards are identified by the `data-controller="app-card"` attribute and
carry their structured data in `data-app-card-*` attributes; ratings and
review counts are read from the card's rendered text.
"""
import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from listing_intel.config import BASE_URL, MAX_FIRST_PAGE_APPS
from listing_intel.models import CategoryPageData, FirstPageApp, FirstPageMetrics, SubcategoryLink
from listing_intel.parsers.field_extraction import FieldExtractor, element_text, in_navigation
from listing_intel.parsers.pricing_hint import normalize_pricing_hint
from listing_intel.text_utils import collapse_whitespace

APP_CARD_SELECTOR = '[data-controller="app-card"]'
SPONSORED_SURFACES = ("surface_type=category_ad", "surface_type=search_ad")

RATING_PATTERN = re.compile(r"(\d(?:\.\d)?)\s*out of 5 stars")
REVIEW_COUNT_PATTERN = re.compile(r"\(([\d,]+)\)\s*[\d,]*\s*total reviews")
REVIEW_COUNT_FALLBACK_PATTERN = re.compile(r"([\d,]+)\s*total reviews")
APP_COUNT_PATTERN = re.compile(r"(\d[\d,]*)\s+apps?\b", re.I)
TRAILING_APPS_PATTERN = re.compile(r"\s+apps?\s*$", re.I)

# Boilerplate rendered inside sponsored cards
AD_TEXT_MARKERS = ("app developer paid to promote", "This ad is based on", "paid search")
DESCRIPTION_EXCLUDED_MARKERS = (
    "out of 5 stars", "total reviews", "highest standards", "Built for Shopify", "Included with Shopify",
)


def parse_category_page(html: str, url: str) -> CategoryPageData:
    """
    Parse a category page (main or /all) into listings, metrics,
    subcategory links and category metadata.

    Args:
        html (str): Raw markup of the category page.
        url (str): Source URL, used to derive the category slug.

    Returns:
        CategoryPageData: Structured record; unparseable fields hold their defaults.
    """
    soup = BeautifulSoup(html, "html.parser")
    slug = extract_slug_from_url(url)
    fields = FieldExtractor(slug)

    title = fields.extract("title", lambda: _parse_title(soup, slug), slug)
    first_page_apps = fields.extract("appCards", lambda: _parse_app_cards(soup), [])

    record = CategoryPageData(
        slug=slug,
        url=url,
        data_source_url=url.split("?")[0],
        title=title,
        breadcrumb=fields.extract("breadcrumb", lambda: _parse_breadcrumb(soup), ""),
        description=fields.extract("description", lambda: _parse_description(soup), ""),
        app_count=fields.extract("appCount", lambda: _parse_app_count(soup), None, validate=lambda v: v >= 0),
        first_page_metrics=fields.extract(
            "firstPageMetrics",
            lambda: compute_metrics(first_page_apps) if first_page_apps else None,
            None,
        ),
        first_page_apps=first_page_apps,
        subcategory_links=fields.extract("subcategoryLinks", lambda: _parse_subcategory_links(soup, slug), []),
    )
    record.parse_warnings = fields.diagnostics
    return record


def should_use_all_page(html: str) -> bool:
    """True when the main page has no app cards or links to its /all variant."""
    soup = BeautifulSoup(html, "html.parser")
    if not soup.select(APP_CARD_SELECTOR):
        return True
    for link in soup.select('a[href*="/all"]'):
        text = link.get_text(" ").lower()
        if "view all" in text or "see all" in text:
            return True
    return False


def has_next_page(html: str) -> bool:
    """True only when an explicit rel="next" pagination link exists."""
    # Numbered and "previous" links also carry page=, so they are not checked
    soup = BeautifulSoup(html, "html.parser")
    return soup.select_one('a[rel="next"]') is not None


def extract_slug_from_url(url: str) -> str:
    match = re.search(r"/categories/([^/?]+)", url or "")
    return match.group(1) if match else ""


# --- Metadata ---

def _parse_title(soup: BeautifulSoup, slug: str) -> str:
    raw = element_text(soup.h1) if soup.h1 else ""
    return TRAILING_APPS_PATTERN.sub("", raw or slug)


def _parse_breadcrumb(soup: BeautifulSoup) -> str:
    # Ancestor category links carry surface_type=category
    parts: List[str] = []
    for link in soup.select('a[href*="surface_type=category"]'):
        text = element_text(link)
        if not text or text in parts:
            continue
        if not re.search(r"/categories/([^/?]+)", link.get("href") or ""):
            continue
        parts.append(text)

    h1 = element_text(soup.h1) if soup.h1 else ""
    if h1 and h1 not in parts:
        parts.append(h1)
    return " > ".join(parts)


def _parse_description(soup: BeautifulSoup) -> str:
    meta = soup.find("meta", attrs={"name": "description"})
    if meta is not None and (meta.get("content") or "").strip():
        return meta["content"].strip()

    if soup.h1 is not None:
        paragraph = soup.h1.find_next_sibling()
        if paragraph is not None and paragraph.name == "p":
            return element_text(paragraph)
    return ""


def _parse_app_count(soup: BeautifulSoup) -> Optional[int]:
    match = APP_COUNT_PATTERN.search(soup.get_text(" "))
    return int(match.group(1).replace(",", "")) if match else None


def _parse_subcategory_links(soup: BeautifulSoup, current_slug: str) -> List[SubcategoryLink]:
    links: List[SubcategoryLink] = []
    seen = set()
    for link in soup.select('a[href*="/categories/"][href*="surface_detail"]'):
        if in_navigation(link):
            continue
        clean_href = (link.get("href") or "").split("?")[0]
        if "/all" in clean_href:
            continue
        slug_match = re.search(r"/categories/([^/?]+)$", clean_href)
        if not slug_match:
            continue

        slug = slug_match.group(1)
        # Direct children only: "marketing" -> "marketing-email"
        if not slug.startswith(f"{current_slug}-") or slug in seen:
            continue
        seen.add(slug)

        # First line only; child links can carry a multi-line description
        first_line = link.get_text().strip().split("\n")[0]
        title = TRAILING_APPS_PATTERN.sub("", collapse_whitespace(first_line))
        if title and len(title) < 200:
            links.append(SubcategoryLink(slug=slug, url=f"{BASE_URL}/categories/{slug}", title=title))
    return links


# --- App cards ---

def _parse_app_cards(soup: BeautifulSoup) -> List[FirstPageApp]:
    apps: List[FirstPageApp] = []
    seen = set()

    for card in soup.select(APP_CARD_SELECTOR):
        app_slug = card.get("data-app-card-handle-value") or ""
        name = (card.get("data-app-card-name-value") or "").strip()
        if not app_slug or not name:
            continue
        # The same app can appear as both an ad and an organic result
        if app_slug in seen:
            continue
        seen.add(app_slug)

        app_link = card.get("data-app-card-app-link-value") or ""
        position = card.get("data-app-card-intra-position-value")
        rating, count = extract_rating_from_text(card.get_text(" "))

        apps.append(FirstPageApp(
            app_slug=app_slug,
            name=name,
            short_description=card_description(card),
            average_rating=rating,
            rating_count=count,
            app_url=f"{BASE_URL}/{app_slug}",
            logo_url=card.get("data-app-card-icon-url-value") or "",
            position=int(position) if position and position.isdigit() and int(position) > 0 else None,
            pricing_hint=card_pricing_hint(card) or None,
            is_sponsored=any(marker in app_link for marker in SPONSORED_SURFACES),
            is_built_for_shopify=card.select_one('[class*="built-for-shopify"]') is not None,
        ))

    return apps[:MAX_FIRST_PAGE_APPS]


def extract_rating_from_text(text: str) -> Tuple[float, int]:
    """
    Read rating and review count from card text such as
    "4.9 out of 5 stars (2,121) 2121 total reviews".
    """
    rating_match = RATING_PATTERN.search(text)
    rating = float(rating_match.group(1)) if rating_match else 0.0

    count_match = REVIEW_COUNT_PATTERN.search(text) or REVIEW_COUNT_FALLBACK_PATTERN.search(text)
    count = int(count_match.group(1).replace(",", "")) if count_match else 0
    return rating, count


def _is_ad_text(text: str) -> bool:
    return any(marker in text for marker in AD_TEXT_MARKERS)


def card_description(card: Tag) -> str:
    # The subtitle is a leaf div with these utility classes
    for div in card.select("div.tw-text-fg-secondary.tw-text-body-xs"):
        if div.find(True) is None:
            text = element_text(div)
            if len(text) > 5 and not _is_ad_text(text):
                return text
            break

    # Fallback: the longest descriptive text block
    best = ""
    for el in card.find_all(["p", "div"]):
        text = element_text(el)
        if (
            len(text) > max(10, len(best))
            and not _is_ad_text(text)
            and not any(marker in text for marker in DESCRIPTION_EXCLUDED_MARKERS)
        ):
            best = text
    return best


def card_pricing_hint(card: Tag) -> str:
    span = card.select_one("span.tw-overflow-hidden.tw-whitespace-nowrap.tw-text-ellipsis")
    if span is None:
        return ""
    return normalize_pricing_hint(element_text(span))


# --- Metrics ---

def compute_metrics(apps: List[FirstPageApp]) -> FirstPageMetrics:
    """Aggregate review concentration and badge counts over first-page apps."""
    ranked = sorted(apps, key=lambda a: a.rating_count, reverse=True)
    total_reviews = sum(a.rating_count for a in apps)

    top_4 = ranked[:4]
    top_8 = ranked[:8]
    top_4_reviews = sum(a.rating_count for a in top_4)
    top_8_reviews = sum(a.rating_count for a in top_8)

    return FirstPageMetrics(
        sponsored_count=sum(1 for a in apps if a.is_sponsored),
        built_for_shopify_count=sum(1 for a in apps if a.is_built_for_shopify),
        count_100_plus_reviews=sum(1 for a in apps if a.rating_count >= 100),
        count_1000_plus_reviews=sum(1 for a in apps if a.rating_count >= 1000),
        total_reviews=total_reviews,
        top_4_avg_rating=sum(a.average_rating for a in top_4) / len(top_4) if top_4 else 0.0,
        top_4_avg_rating_count=top_4_reviews / len(top_4) if top_4 else 0.0,
        top_1_pct_reviews=ranked[0].rating_count / total_reviews if total_reviews else 0.0,
        top_4_pct_reviews=top_4_reviews / total_reviews if total_reviews else 0.0,
        top_8_pct_reviews=top_8_reviews / total_reviews if total_reviews else 0.0,
    )
