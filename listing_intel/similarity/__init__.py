"""Cross-app similarity scoring."""
from listing_intel.similarity.similarity import (
    DEFAULT_WEIGHTS,
    SimilarityWeights,
    build_similarity_data,
    canonical_pair,
    compute_similarity_between,
    extract_category_slugs,
    extract_feature_handles,
)
from listing_intel.similarity.similarity_job import compute_similarity_scores, score_pairs

__all__ = [
    "DEFAULT_WEIGHTS",
    "SimilarityWeights",
    "build_similarity_data",
    "canonical_pair",
    "compute_similarity_between",
    "extract_category_slugs",
    "extract_feature_handles",
    "compute_similarity_scores",
    "score_pairs",
]
