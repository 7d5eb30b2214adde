"""Keyword mining and keyword opportunity scoring."""
from listing_intel.keywords.keyword_extractor import (
    FIELD_WEIGHTS,
    extract_keywords,
    generate_ngrams,
    metadata_from_record,
)
from listing_intel.keywords.keyword_opportunity import compute_keyword_opportunity

__all__ = [
    "FIELD_WEIGHTS",
    "extract_keywords",
    "generate_ngrams",
    "metadata_from_record",
    "compute_keyword_opportunity",
]
