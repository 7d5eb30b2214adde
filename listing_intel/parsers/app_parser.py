"""
App detail page parser.

Prefers the embedded JSON-LD SoftwareApplication block for name and
rating data, and falls back to heading/link/text heuristics for
everything else. Each field is extracted independently: a structural
change to one section of the page degrades that field only.
"""
import json
import re
from collections import OrderedDict
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import pandas as pd
from bs4 import BeautifulSoup
from loguru import logger

from listing_intel.config import BASE_URL, SUBCATEGORY_HANDLE_SEGMENT
from listing_intel.models import (
    AppCategory,
    AppDetails,
    AppDeveloper,
    AppFeature,
    AppSubcategoryGroup,
    AppSupport,
    PricingPlan,
)
from listing_intel.parsers.field_extraction import FieldExtractor, absolute_url, element_text, in_navigation
from listing_intel.text_utils import collapse_whitespace

# Headings that follow the gallery anchor but are never the marketing title
INTRODUCTION_DENY_PREFIXES = (
    "Pricing", "Reviews", "Support", "More apps", "Want to add", "Log in", "Apps by",
)
INTRODUCTION_ANCHOR = "Featured images gallery"

PRICING_SUMMARY_PATTERNS = [
    re.compile(r"Free plan available", re.I),
    re.compile(r"Free trial available", re.I),
    re.compile(r"Free to install", re.I),
    re.compile(r"^[ \t]*Free[ \t]*$", re.M),
    re.compile(r"From \$[\d.,]+/month", re.I),
]

PLAN_NAME_PATTERN = re.compile(
    r"^(Professional|Enterprise|Unlimited|Advanced|Business|Standard|Starter|"
    r"Premium|Basic|Free|Plus|Pro)\b",
    re.I,
)
PRICE_PATTERN = re.compile(r"\$(\d[\d,]*(?:\.\d+)?)\s*/\s*(month|year)")
YEARLY_PRICE_PATTERN = re.compile(r"\$(\d[\d,]*(?:\.\d+)?)\s*/\s*year")
DISCOUNT_PATTERN = re.compile(r"save\s+(\d+%)", re.I)
TRIAL_PATTERN = re.compile(r"(\d+-day free trial)", re.I)

FEATURE_HANDLE_PATTERN = re.compile(r"feature_handles(?:%5B%5D|\[\])=([^&]+)")
CATEGORY_SLUG_PATTERN = re.compile(r"/categories/([^/?]+)")


def parse_app_page(html: str, slug: str) -> AppDetails:
    """
    Parse an app detail page and extract all available data.

    Args:
        html (str): Raw markup of the app detail page.
        slug (str): The app's stable identifier.

    Returns:
        AppDetails: Structured record. Fields that could not be extracted
                    hold their defaults; see `parse_warnings` for details.
    """
    soup = BeautifulSoup(html, "html.parser")
    fields = FieldExtractor(slug)

    json_ld = fields.extract("jsonLd", lambda: _parse_json_ld(soup), {})
    app_name = fields.extract("appName", lambda: _parse_app_name(soup, json_ld), "") or slug

    record = AppDetails(
        app_slug=slug,
        app_name=app_name,
        icon_url=fields.extract("iconUrl", lambda: _json_ld_image(json_ld), None),
        app_introduction=fields.extract("appIntroduction", lambda: _parse_app_introduction(soup), ""),
        app_details=fields.extract("appDetails", lambda: _parse_app_details(soup), ""),
        seo_title=fields.extract("seoTitle", lambda: _parse_seo_title(soup), ""),
        seo_meta_description=fields.extract("seoMetaDescription", lambda: _parse_meta_description(soup), ""),
        features=fields.extract("features", lambda: _parse_features(soup), []),
        pricing=fields.extract("pricing", lambda: _parse_pricing_summary(soup), ""),
        average_rating=fields.extract(
            "averageRating",
            lambda: _to_float(json_ld.get("ratingValue")),
            None,
            validate=lambda v: 0 <= v <= 5,
        ),
        rating_count=fields.extract(
            "ratingCount",
            lambda: _to_int(json_ld.get("ratingCount")),
            None,
            validate=lambda v: v >= 0,
        ),
        developer=fields.extract("developer", lambda: _parse_developer(soup), AppDeveloper()),
        launched_date=fields.extract("launchedDate", lambda: _parse_launched_date(soup), None),
        demo_store_url=fields.extract("demoStoreUrl", lambda: _parse_demo_store_url(soup), None),
        languages=fields.extract("languages", lambda: _parse_languages(soup), []),
        integrations=fields.extract("integrations", lambda: _parse_integrations(soup), []),
        categories=fields.extract("categories", lambda: _parse_categories(soup), []),
        pricing_plans=fields.extract("pricingPlans", lambda: _parse_pricing_plans(soup), []),
        support=fields.extract("support", lambda: _parse_support(soup), None),
    )
    record.parse_warnings = fields.diagnostics
    return record


# --- JSON-LD ---

def _parse_json_ld(soup: BeautifulSoup) -> Dict[str, Any]:
    """Return name/rating/image from the SoftwareApplication JSON-LD block, or {}."""
    result: Dict[str, Any] = {}
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or "")
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping unreadable JSON-LD block: {e}")
            continue

        if isinstance(data, dict):
            candidates = data.get("@graph", [data])
        elif isinstance(data, list):
            candidates = data
        else:
            continue
        for item in candidates:
            if isinstance(item, dict) and item.get("@type") == "SoftwareApplication":
                rating = item.get("aggregateRating") or {}
                result = {
                    "name": (item.get("name") or "").strip(),
                    "ratingValue": rating.get("ratingValue"),
                    "ratingCount": rating.get("ratingCount"),
                    "image": item.get("image"),
                }
    return result


def _parse_app_name(soup: BeautifulSoup, json_ld: Dict[str, Any]) -> str:
    if json_ld.get("name"):
        return json_ld["name"]
    return element_text(soup.h1) if soup.h1 else ""


def _json_ld_image(json_ld: Dict[str, Any]) -> Optional[str]:
    image = json_ld.get("image")
    if isinstance(image, dict):
        image = image.get("url")
    return image or None


def _to_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _to_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(str(value).replace(",", ""))


# --- Text fields ---

def _parse_app_introduction(soup: BeautifulSoup) -> str:
    # The short tagline is the first h2 inside #app-details
    details = soup.find(id="app-details")
    if details is not None:
        h2 = details.find("h2")
        if h2 is not None:
            text = element_text(h2)
            if 5 < len(text) < 500:
                return text

    # Older layout: first qualifying h2 after the gallery heading
    found = False
    for h2 in soup.find_all("h2"):
        text = element_text(h2)
        if found and 5 < len(text) < 300:
            if not text.startswith(INTRODUCTION_DENY_PREFIXES) and "isn't compatible" not in text:
                return text
        if text == INTRODUCTION_ANCHOR:
            found = True
    return ""


def _parse_app_details(soup: BeautifulSoup) -> str:
    details = soup.find(id="app-details")
    if details is None:
        return ""

    # Desktop paragraph first, then the truncated (mobile) copy
    desktop = details.find("p", class_="lg:tw-block")
    if desktop is not None:
        text = element_text(desktop)
        if len(text) > 10:
            return text

    truncated = details.find(attrs={"data-truncate-content-copy": True})
    if truncated is not None:
        text = element_text(truncated)
        if len(text) > 10:
            return text
    return ""


def _parse_seo_title(soup: BeautifulSoup) -> str:
    return element_text(soup.title) if soup.title else ""


def _parse_meta_description(soup: BeautifulSoup) -> str:
    meta = soup.find("meta", attrs={"name": "description"})
    return (meta.get("content") or "").strip() if meta else ""


def _parse_features(soup: BeautifulSoup) -> List[str]:
    details = soup.find(id="app-details")
    if details is None:
        return []
    features = []
    for li in details.select("ul.tw-list-disc li"):
        text = element_text(li)
        if 5 < len(text) < 500:
            features.append(text)
    return features


def _parse_pricing_summary(soup: BeautifulSoup) -> str:
    body_text = soup.get_text("\n")
    for pattern in PRICING_SUMMARY_PATTERNS:
        match = pattern.search(body_text)
        if match:
            return match.group(0).strip()

    first_card = soup.select_one(".app-details-pricing-plan-card")
    if first_card is not None:
        text = collapse_whitespace(first_card.get_text(" "))
        if "Free" in text:
            return "Free plan available"
        price = re.search(r"\$[\d.,]+", text)
        if price:
            return f"From {price.group(0)}/month"
    return ""


# --- Links ---

def _parse_developer(soup: BeautifulSoup) -> AppDeveloper:
    developer = AppDeveloper()
    for link in soup.select('a[href*="/partners/"]'):
        if in_navigation(link):
            continue
        developer.name = element_text(link)
        developer.url = absolute_url(link.get("href") or "", BASE_URL)
        break

    # Last matching link wins
    for link in soup.find_all("a", href=True):
        if element_text(link).lower() in ("website", "developer website"):
            developer.website = link["href"] or None
    return developer


def _parse_demo_store_url(soup: BeautifulSoup) -> Optional[str]:
    demo_url = None
    for link in soup.find_all("a"):
        text = element_text(link).lower()
        if "demo store" in text or "view demo" in text:
            demo_url = link.get("href") or None
    return demo_url


def _parse_support(soup: BeautifulSoup) -> Optional[AppSupport]:
    section = soup.find("section", id="adp-developer")
    if section is None:
        return None

    email = section.get("data-developer-support-email") or None
    portal_url = None
    for link in section.find_all("a", href=True):
        href = link["href"]
        text = element_text(link).lower()
        if any(word in text for word in ("support", "help", "contact")):
            if href.startswith("http") and "shopify.com" not in href:
                portal_url = href

    if not email and not portal_url:
        return None
    return AppSupport(email=email, portal_url=portal_url)


# --- Labelled text sections ---

def _split_section(pattern: str, soup: BeautifulSoup, max_len: int) -> List[str]:
    match = re.search(pattern, soup.get_text("\n"))
    if not match:
        return []
    items = (item.strip() for item in re.split(r"[,\n]", match.group(1).strip()))
    return [item for item in items if 0 < len(item) < max_len]


def _parse_languages(soup: BeautifulSoup) -> List[str]:
    return _split_section(r"Languages\s+([\s\S]*?)(?:Works with|Categories|$)", soup, 50)


def _parse_integrations(soup: BeautifulSoup) -> List[str]:
    return _split_section(r"Works with\s+([\s\S]*?)(?:Categories|Built for|$)", soup, 100)


def _parse_launched_date(soup: BeautifulSoup) -> Optional[date]:
    for p in soup.find_all("p"):
        if element_text(p) != "Launched":
            continue
        sibling = p.find_next_sibling("p")
        if sibling is None or not sibling.contents:
            continue
        # Only the leading text node; the changelog link follows a separator
        first = sibling.contents[0]
        raw = first.get_text() if hasattr(first, "get_text") else str(first)
        raw = re.sub(r"[·•].*$", "", raw).strip()
        if raw:
            parsed = pd.to_datetime(raw, errors="coerce")
            if not pd.isna(parsed):
                return parsed.date()
    return None


# --- Categories ---

def _parse_categories(soup: BeautifulSoup) -> List[AppCategory]:
    """
    Rebuild the declared category -> subcategory -> feature tree.

    Feature links carry a `feature_handles[]` query parameter and point at
    their category page; category titles come from plain category links.
    """
    by_category: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()

    for link in soup.select('a[href*="feature_handles"]'):
        href = link.get("href") or ""
        handle_match = FEATURE_HANDLE_PATTERN.search(href)
        if not handle_match:
            continue
        category_match = CATEGORY_SLUG_PATTERN.search(href.split("?")[0])
        if not category_match:
            continue

        category_slug = category_match.group(1)
        entry = by_category.setdefault(category_slug, {
            "title": "",
            "url": f"{BASE_URL}/categories/{category_slug}",
            "features": [],
        })
        entry["features"].append(AppFeature(
            title=element_text(link),
            url=absolute_url(href, BASE_URL),
            feature_handle=unquote(handle_match.group(1)),
        ))

    if not by_category:
        return []

    for link in soup.select('a[href*="/categories/"]'):
        if in_navigation(link) or "feature_handles" in (link.get("href") or ""):
            continue
        href = re.sub(r"/all$", "", (link.get("href") or "").split("?")[0])
        slug_match = re.search(r"/categories/([^/]+)$", href)
        if not slug_match:
            continue
        entry = by_category.get(slug_match.group(1))
        text = element_text(link)
        if entry is not None and not entry["title"] and text and len(text) < 100:
            entry["title"] = text

    categories = []
    for index, entry in enumerate(by_category.values()):
        categories.append(AppCategory(
            type="primary" if index == 0 else "secondary",
            title=entry["title"] or "Unknown",
            url=entry["url"],
            subcategories=group_features(entry["features"]),
        ))
    return categories


def group_features(
    features: List[AppFeature],
    segment: int = SUBCATEGORY_HANDLE_SEGMENT,
) -> List[AppSubcategoryGroup]:
    """
    Bucket features by one dot-delimited segment of their handle.

    Handles such as "cf.forms.form_types.feedback" group under "Form Types";
    handles too short to carry the segment fall into "General".
    """
    groups: "OrderedDict[str, AppSubcategoryGroup]" = OrderedDict()
    for feature in features:
        parts = feature.feature_handle.split(".")
        if len(parts) > segment and parts[segment]:
            key = parts[segment]
        else:
            logger.debug(f"Feature handle '{feature.feature_handle}' has no segment {segment}, grouping as general")
            key = "general"
        if key not in groups:
            groups[key] = AppSubcategoryGroup(title=key.replace("_", " ").title())
        groups[key].features.append(feature)
    return list(groups.values())


# --- Pricing plans ---

def _parse_pricing_plans(soup: BeautifulSoup) -> List[PricingPlan]:
    plans = []
    for card in soup.select(".app-details-pricing-plan-card"):
        text = collapse_whitespace(card.get_text(" "))
        name = extract_plan_name(text)

        price_match = PRICE_PATTERN.search(text)
        yearly_match = YEARLY_PRICE_PATTERN.search(text)
        discount_match = DISCOUNT_PATTERN.search(text)
        trial_match = TRIAL_PATTERN.search(text)

        items = (element_text(li) for li in card.find_all("li"))
        features = [item for item in items if 0 < len(item) < 200]
        if not features:
            features = _split_card_features(card.get_text("  ", strip=True), name)

        plans.append(PricingPlan(
            name=name,
            price=_parse_price(price_match.group(1)) if price_match else None,
            period=price_match.group(2) if price_match else None,
            yearly_price=_parse_price(yearly_match.group(1)) if yearly_match else None,
            discount_text=f"save {discount_match.group(1)}" if discount_match else None,
            trial_text=trial_match.group(1) if trial_match else None,
            features=features,
        ))
    return plans


def _parse_price(raw: str) -> float:
    return float(raw.replace(",", ""))


def _split_card_features(text: str, plan_name: str) -> List[str]:
    # Card text without list markup: segments separated by wide gaps
    text = re.sub(r"^.*?(Free|All\s)", r"\1", text, count=1)
    features = []
    for segment in re.split(r"\s{2,}", text):
        cleaned = segment.strip()
        if (
            3 < len(cleaned) < 200
            and cleaned != plan_name
            and "$" not in cleaned
            and "month" not in cleaned
            and not cleaned.startswith(("Starter", "Pro", "Free,"))
        ):
            features.append(cleaned)
    return features


def extract_plan_name(text: str) -> str:
    """Plan name from a known vocabulary, else the card's first token."""
    match = PLAN_NAME_PATTERN.match(text)
    if match:
        return match.group(1)
    first_word = re.split(r"[\s,]", text, maxsplit=1)[0]
    return first_word if len(first_word) < 30 else "Plan"
