import time
from datetime import date, datetime
from typing import Dict, Iterator, List, Sequence, Tuple

from loguru import logger

from listing_intel.config import BATCH_SIZE
from listing_intel.models import AppSimilarityData, CompetitorPair, ScrapeRun, SimilarityResult
from listing_intel.similarity.similarity import (
    DEFAULT_WEIGHTS,
    SimilarityWeights,
    build_similarity_data,
    canonical_pair,
    compute_similarity_between,
)
from listing_intel.storage.base import SimilarityStore

SCRAPER_TYPE = "compute_similarity_scores"


def batch_iter(items: Sequence, batch_size: int) -> Iterator[Tuple[int, Sequence]]:
    """
    Yield index and slices of size `batch_size` for batched processing.
    """
    n = len(items)
    for i in range(0, n, batch_size):
        yield i, items[i:i + batch_size]


async def load_similarity_data(store: SimilarityStore, slugs: List[str]) -> Dict[str, AppSimilarityData]:
    """
    Fetch every input once and derive the signal sets of each involved app.

    Args:
        store (SimilarityStore): Storage collaborator.
        slugs (List[str]): All slugs appearing in at least one tracked pair.

    Returns:
        Dict[str, AppSimilarityData]: Signals keyed by slug; apps with no stored
                                      data get empty signal sets.
    """
    snapshots = await store.get_latest_snapshots(slugs)
    app_info = await store.get_app_info(slugs)
    keyword_ids = await store.get_ranked_keyword_ids(slugs)
    logger.debug(
        f"Loaded {len(snapshots)} snapshots, {len(app_info)} app records and "
        f"keyword rankings for {len(keyword_ids)} of {len(slugs)} apps"
    )

    return {
        slug: build_similarity_data(snapshots.get(slug), app_info.get(slug), keyword_ids.get(slug, ()))
        for slug in slugs
    }


def score_pairs(
    pairs: List[CompetitorPair],
    signals: Dict[str, AppSimilarityData],
    weights: SimilarityWeights = DEFAULT_WEIGHTS,
) -> List[SimilarityResult]:
    """
    Score each unordered tracked pair once.

    A pair tracked from both sides (A tracks B, B tracks A) yields a single
    result keyed by its canonical ordering.
    """
    empty = AppSimilarityData()
    seen = set()
    results = []
    for pair in pairs:
        key = canonical_pair(pair.tracked_app_slug, pair.app_slug)
        if key in seen:
            continue
        seen.add(key)
        slug_a, slug_b = key
        results.append(compute_similarity_between(
            slug_a, signals.get(slug_a, empty),
            slug_b, signals.get(slug_b, empty),
            weights=weights,
        ))
    return results


async def compute_similarity_scores(
    store: SimilarityStore,
    triggered_by: str,
    weights: SimilarityWeights = DEFAULT_WEIGHTS,
    batch_size: int = BATCH_SIZE,
) -> ScrapeRun:
    """
    Recompute similarity scores for every tracked competitor pair.

    - Records a run, then loads pairs and per-app inputs once.
    - Scores each canonical pair and upserts results in chunks of `batch_size`.
    - Marks the run completed, or failed (re-raising) if the store errors.

    Args:
        store (SimilarityStore): Storage collaborator.
        triggered_by (str): Who or what started the run (for the run record).
        weights (SimilarityWeights): Component weights.
        batch_size (int): Number of results per upsert.

    Returns:
        ScrapeRun: The finished run record.
    """
    start = time.perf_counter()
    run = await store.start_run(SCRAPER_TYPE, triggered_by)
    logger.info(f"▶️ Similarity run {run.id} started (triggered by {triggered_by})")

    try:
        pairs = await store.get_competitor_pairs()
        computed = 0

        if not pairs:
            logger.info("No competitor pairs found")
        else:
            slugs = sorted({slug for p in pairs for slug in (p.tracked_app_slug, p.app_slug)})
            signals = await load_similarity_data(store, slugs)
            results = score_pairs(pairs, signals, weights)

            today = date.today()
            for start_idx, chunk in batch_iter(results, batch_size):
                await store.upsert_similarity_scores(list(chunk), today)
                computed += len(chunk)
                logger.debug(f"Upserted scores {start_idx}..{start_idx + len(chunk) - 1} of {len(results)}")

        duration_ms = int((time.perf_counter() - start) * 1000)
        run.status = "completed"
        run.completed_at = datetime.now()
        run.metadata = {"pairs_computed": computed, "duration_ms": duration_ms}
        await store.finish_run(run)
        logger.info(f"✅ Similarity scores computed: {computed} pairs in {duration_ms}ms")
        return run

    except Exception as e:
        logger.error(f"⚠️ Failed to compute similarity scores: {e}")
        run.status = "failed"
        run.completed_at = datetime.now()
        run.error = str(e)
        await store.finish_run(run)
        raise
