"""
App-to-app similarity along four independent dimensions:
shared categories, shared feature handles, shared ranked keywords and
shared descriptive vocabulary. Each dimension is a Jaccard index and the
overall score is their weighted sum.
"""
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Optional, Sequence

from listing_intel.config import SIMILARITY_WEIGHTS
from listing_intel.models import AppInfo, AppSimilarityData, AppSnapshot, SimilarityResult
from listing_intel.text_utils import jaccard, join_non_empty, tokenize


@dataclass(frozen=True)
class SimilarityWeights:
    """Weight per similarity component; must sum to 1."""
    category: float = 0.25
    feature: float = 0.25
    keyword: float = 0.25
    text: float = 0.25

    def __post_init__(self):
        values = (self.category, self.feature, self.keyword, self.text)
        if any(w < 0 for w in values):
            raise ValueError(f"Similarity weights must be non-negative, got {values}")
        if not math.isclose(sum(values), 1.0, abs_tol=1e-9):
            raise ValueError(f"Similarity weights must sum to 1, got {sum(values)}")

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "SimilarityWeights":
        if len(values) != 4:
            raise ValueError(f"Expected 4 similarity weights (category, feature, keyword, text), got {len(values)}")
        return cls(*values)


DEFAULT_WEIGHTS = SimilarityWeights.from_sequence(SIMILARITY_WEIGHTS)


def extract_category_slugs(categories: Iterable[Dict[str, Any]]) -> FrozenSet[str]:
    """Category slugs from stored category dicts, e.g. ".../categories/marketing" -> "marketing"."""
    slugs = set()
    for category in categories:
        url = category.get("url")
        if not url:
            continue
        slug = re.sub(r"/.*", "", re.sub(r".*/categories/", "", url))
        if slug:
            slugs.add(slug)
    return frozenset(slugs)


def extract_feature_handles(categories: Iterable[Dict[str, Any]]) -> FrozenSet[str]:
    handles = set()
    for category in categories:
        for sub in category.get("subcategories") or []:
            for feature in sub.get("features") or []:
                if feature.get("feature_handle"):
                    handles.add(feature["feature_handle"])
    return frozenset(handles)


def build_similarity_data(
    snapshot: Optional[AppSnapshot],
    info: Optional[AppInfo],
    keyword_ids: Iterable[str] = (),
) -> AppSimilarityData:
    """
    Derive the four signal sets for one app.

    Args:
        snapshot: Latest stored snapshot (categories, introduction), if any.
        info: Name and subtitle, if known.
        keyword_ids: Keywords the app currently ranks for.

    Returns:
        AppSimilarityData: Category slugs, feature handles, keyword ids, text tokens.
    """
    categories = snapshot.categories if snapshot else []
    text = join_non_empty([
        info.name if info else "",
        (info.subtitle or "") if info else "",
        (snapshot.app_introduction or "") if snapshot else "",
    ])
    return AppSimilarityData(
        category_slugs=extract_category_slugs(categories),
        feature_handles=extract_feature_handles(categories),
        keyword_ids=frozenset(str(k) for k in keyword_ids),
        text_tokens=tokenize(text),
    )


def canonical_pair(slug_a: str, slug_b: str):
    """Order a pair so the lexicographically smaller slug comes first."""
    return (slug_a, slug_b) if slug_a <= slug_b else (slug_b, slug_a)


def compute_similarity_between(
    slug_a: str,
    data_a: AppSimilarityData,
    slug_b: str,
    data_b: AppSimilarityData,
    weights: SimilarityWeights = DEFAULT_WEIGHTS,
) -> SimilarityResult:
    """
    Compute similarity between two apps given their pre-processed signals.

    The result is keyed by the canonical pair and is identical whichever
    app is passed first.
    """
    if slug_b < slug_a:
        slug_a, data_a, slug_b, data_b = slug_b, data_b, slug_a, data_a

    category = jaccard(data_a.category_slugs, data_b.category_slugs)
    feature = jaccard(data_a.feature_handles, data_b.feature_handles)
    keyword = jaccard(data_a.keyword_ids, data_b.keyword_ids)
    text = jaccard(data_a.text_tokens, data_b.text_tokens)

    overall = (
        weights.category * category
        + weights.feature * feature
        + weights.keyword * keyword
        + weights.text * text
    )
    return SimilarityResult(
        app_slug_a=slug_a,
        app_slug_b=slug_b,
        overall=overall,
        category=category,
        feature=feature,
        keyword=keyword,
        text=text,
    )
