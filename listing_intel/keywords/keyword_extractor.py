"""
Keyword suggestions mined from an app's own listing metadata.

Candidates are 1-3 word n-grams from each metadata field. A candidate
gains `field weight x word count` once for every field it appears in, and
is kept only when a primary text field contains it and at least two
distinct fields agree on it.
"""
from collections import OrderedDict
from types import MappingProxyType
from typing import AbstractSet, Iterable, List, Mapping, Optional

from loguru import logger

from listing_intel.config import DESCRIPTION_WORD_CAP
from listing_intel.models import AppCategory, AppDetails, AppMetadataInput, KeywordSource, ScoredKeyword
from listing_intel.text_utils import KEYWORD_STOP_WORDS, clean_words

FIELD_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "name": 10.0,
    "subtitle": 5.0,
    "introduction": 4.0,
    "categories": 3.0,
    "features": 2.0,
    "description": 2.0,
    "categoryFeatures": 2.0,
})

PRIMARY_FIELDS = frozenset({"name", "subtitle", "introduction", "description"})
MIN_FIELDS = 2
MAX_KEYWORD_WORDS = 3


def generate_ngrams(
    text: str,
    max_n: int = 3,
    stop_words: AbstractSet[str] = KEYWORD_STOP_WORDS,
) -> List[str]:
    """
    Generate keyword candidates of 1 to `max_n` words.

    Unigrams need 4+ characters and must not be stop words; bigrams need
    one non-stop word, trigrams two.
    """
    words = clean_words(text)
    candidates = [w for w in words if len(w) >= 4 and w not in stop_words]

    if max_n >= 2:
        for a, b in zip(words, words[1:]):
            if a not in stop_words or b not in stop_words:
                candidates.append(f"{a} {b}")

    if max_n >= 3:
        for a, b, c in zip(words, words[1:], words[2:]):
            if sum(1 for w in (a, b, c) if w not in stop_words) >= 2:
                candidates.append(f"{a} {b} {c}")

    return candidates


def extract_keywords(
    metadata: AppMetadataInput,
    stop_words: AbstractSet[str] = KEYWORD_STOP_WORDS,
    field_weights: Mapping[str, float] = FIELD_WEIGHTS,
) -> List[ScoredKeyword]:
    """
    Rank keyword candidates mined from app metadata.

    Args:
        metadata (AppMetadataInput): Name, subtitle, introduction, description,
                                     feature bullets and declared categories.
        stop_words: Words never kept as unigrams.
        field_weights: Weight per source field.

    Returns:
        List[ScoredKeyword]: Corroborated keywords, highest score first.
    """
    candidates: "OrderedDict[str, ScoredKeyword]" = OrderedDict()

    def ngrams(text: str) -> List[str]:
        return generate_ngrams(text, stop_words=stop_words)

    for field_name, phrases in _field_candidates(metadata, ngrams, stop_words):
        weight = field_weights[field_name]
        seen = set()
        for raw in phrases:
            keyword = " ".join(raw.lower().split())
            if len(keyword) < 3 or keyword in seen:
                continue
            seen.add(keyword)

            contribution = weight * len(keyword.split())
            entry = candidates.get(keyword)
            if entry is None:
                entry = candidates[keyword] = ScoredKeyword(keyword=keyword, score=0.0, count=0)
            entry.score += contribution
            entry.count += 1
            entry.sources.append(KeywordSource(field=field_name, weight=contribution))

    kept = [
        kw for kw in candidates.values()
        if kw.count >= MIN_FIELDS
        and any(s.field in PRIMARY_FIELDS for s in kw.sources)
        and len(kw.keyword.split()) <= MAX_KEYWORD_WORDS
    ]
    logger.debug(f"Kept {len(kept)} of {len(candidates)} keyword candidates for '{metadata.name}'")
    return sorted(kept, key=lambda kw: (-kw.score, kw.keyword))


def _field_candidates(metadata: AppMetadataInput, ngrams, stop_words: AbstractSet[str]):
    """Yield (field, candidate phrases) for every non-empty metadata field."""
    if metadata.name:
        name = metadata.name
        for ch in "|:&-–—":
            name = name.replace(ch, " ")
        # The whole name, minus stop words, is itself a candidate
        name_words = [w for w in clean_words(name) if w not in stop_words]
        phrases = [" ".join(name_words)] if len(name_words) > 1 else []
        yield "name", phrases + ngrams(name)

    if metadata.subtitle:
        yield "subtitle", ngrams(metadata.subtitle)

    if metadata.introduction:
        yield "introduction", ngrams(metadata.introduction)

    category_titles = category_titles_of(metadata.categories)
    if category_titles:
        yield "categories", _titles_and_ngrams(category_titles, ngrams)

    if metadata.description:
        capped = " ".join(metadata.description.split()[:DESCRIPTION_WORD_CAP])
        yield "description", ngrams(capped)

    if metadata.features:
        yield "features", _titles_and_ngrams(metadata.features, ngrams)

    feature_titles = category_feature_titles_of(metadata.categories)
    if feature_titles:
        yield "categoryFeatures", _titles_and_ngrams(feature_titles, ngrams)


def _titles_and_ngrams(titles: List[str], ngrams) -> List[str]:
    # Titles are already keyword-like, so they count whole as well as split
    phrases = list(titles)
    for title in titles:
        phrases.extend(ngrams(title))
    return phrases


def category_titles_of(categories: Iterable[AppCategory]) -> List[str]:
    titles = []
    for category in categories:
        if category.title:
            titles.append(category.title)
        titles.extend(sub.title for sub in category.subcategories if sub.title)
    return titles


def category_feature_titles_of(categories: Iterable[AppCategory]) -> List[str]:
    return [
        feature.title
        for category in categories
        for sub in category.subcategories
        for feature in sub.features
        if feature.title
    ]


def metadata_from_record(record: AppDetails, subtitle: Optional[str] = None) -> AppMetadataInput:
    """Build miner input from a parsed AppDetails; the subtitle comes from app cards."""
    return AppMetadataInput(
        name=record.app_name,
        subtitle=subtitle,
        introduction=record.app_introduction or None,
        description=record.app_details or None,
        features=list(record.features),
        categories=list(record.categories),
    )
