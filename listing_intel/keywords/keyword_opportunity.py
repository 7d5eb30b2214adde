"""
Opportunity scoring for a results page (keyword search or category).

Scores how open the first page is to a new entrant from five signals,
each normalized to [0, 1]:
  - room: how few reviews the top 8 organic apps have accumulated
  - demand: how many apps compete for the term overall
  - organic: share of the page not taken by ads
  - maturity: how few established (1000+ review) apps are present
  - quality: how beatable the incumbents are (badges, ratings)
"""
import math
from types import MappingProxyType
from typing import List, Mapping, Optional

from listing_intel.models import (
    FirstPageApp,
    KeywordOpportunity,
    KeywordOpportunityScores,
    KeywordOpportunityStats,
)

OPPORTUNITY_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "room": 0.35,
    "demand": 0.20,
    "organic": 0.15,
    "maturity": 0.10,
    "quality": 0.20,
})

# Normalization caps
ROOM_CAP = 20_000
DEMAND_CAP = 1_000
MATURITY_APP_CAP = 12
PAGE_SIZE = 24
RATING_FLOOR = 3.5
RATING_CEIL = 5.0


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _avg_rating(apps: List[FirstPageApp]) -> Optional[float]:
    rated = [a.average_rating for a in apps if a.average_rating > 0]
    return sum(rated) / len(rated) if rated else None


def compute_keyword_opportunity(
    results: List[FirstPageApp],
    total_results: Optional[int],
    weights: Mapping[str, float] = OPPORTUNITY_WEIGHTS,
) -> KeywordOpportunity:
    """
    Compute the opportunity score for one results page.

    Args:
        results (List[FirstPageApp]): Listings in page order, ads and built-ins included.
        total_results (Optional[int]): Total number of matching apps, if known.
        weights: Weight per score component.

    Returns:
        KeywordOpportunity: Score (0-100), component scores, raw stats and top 4 organic apps.
    """
    organic = [r for r in results if not r.is_sponsored and not r.is_built_in]
    sponsored = [r for r in results if r.is_sponsored]

    first_page = organic[:PAGE_SIZE]
    top_4 = organic[:4]
    top_8 = organic[:8]

    first_page_total = sum(a.rating_count for a in first_page)
    top_4_total = sum(a.rating_count for a in top_4)
    top_8_total = sum(a.rating_count for a in top_8)
    top_1_reviews = organic[0].rating_count if organic else 0
    top_4_avg_rating = _avg_rating(top_4)

    bfs_count = sum(1 for a in first_page if a.is_built_for_shopify)
    count_1000 = sum(1 for a in first_page if a.rating_count >= 1000)
    safe_total = total_results or 0

    stats = KeywordOpportunityStats(
        total_results=safe_total,
        organic_count=len(first_page),
        sponsored_count=len(sponsored),
        bfs_count=bfs_count,
        count_1000=count_1000,
        count_100=sum(1 for a in first_page if a.rating_count >= 100),
        top_1_reviews=top_1_reviews,
        top_4_total_reviews=top_4_total,
        top_4_avg_rating=top_4_avg_rating,
        first_page_total_reviews=first_page_total,
        first_page_avg_rating=_avg_rating(first_page),
        top_1_review_share=top_1_reviews / first_page_total if first_page_total else 0.0,
        top_4_review_share=top_4_total / first_page_total if first_page_total else 0.0,
    )

    if top_4_avg_rating is None:
        rating_factor = 0.5
    else:
        rating_factor = _clamp01(1 - (top_4_avg_rating - RATING_FLOOR) / (RATING_CEIL - RATING_FLOOR))

    scores = KeywordOpportunityScores(
        room=_clamp01(1 - top_8_total / ROOM_CAP),
        demand=_clamp01(safe_total / DEMAND_CAP),
        organic=_clamp01((PAGE_SIZE - len(sponsored)) / PAGE_SIZE),
        maturity=1 - _clamp01(count_1000 / MATURITY_APP_CAP),
        quality=_clamp01(_clamp01(1 - bfs_count / PAGE_SIZE) * rating_factor),
    )

    raw = sum(weights[name] * getattr(scores, name) for name in weights)
    return KeywordOpportunity(
        # Halves round up
        opportunity_score=max(0, min(100, math.floor(100 * raw + 0.5))),
        scores=scores,
        stats=stats,
        top_apps=top_4,
    )
