"""
Storage boundary for the similarity batch job.

The job reads tracked competitor pairs, the latest snapshot and identity
of each involved app, and their current keyword rankings, then upserts
one score row per canonical pair. Implementations decide where that data
lives.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Iterable, List, Set

from listing_intel.models import AppInfo, AppSnapshot, CompetitorPair, ScrapeRun, SimilarityResult


class StoreError(Exception):
    """Raised when the backing store cannot be read or written."""


class SimilarityStore(ABC):

    @abstractmethod
    async def get_competitor_pairs(self) -> List[CompetitorPair]:
        """Distinct (tracked app, competitor) pairs across all accounts."""

    @abstractmethod
    async def get_latest_snapshots(self, slugs: Iterable[str]) -> Dict[str, AppSnapshot]:
        """Most recent snapshot per slug; slugs without one are omitted."""

    @abstractmethod
    async def get_app_info(self, slugs: Iterable[str]) -> Dict[str, AppInfo]:
        """Name and subtitle per slug."""

    @abstractmethod
    async def get_ranked_keyword_ids(self, slugs: Iterable[str]) -> Dict[str, Set[str]]:
        """Keyword ids each slug has a ranking position for, ignoring rows without a position."""

    @abstractmethod
    async def upsert_similarity_scores(self, results: List[SimilarityResult], computed_at: date) -> None:
        """Insert or overwrite scores keyed by (app_slug_a, app_slug_b)."""

    @abstractmethod
    async def start_run(self, scraper_type: str, triggered_by: str) -> ScrapeRun:
        """Record the start of a batch run."""

    @abstractmethod
    async def finish_run(self, run: ScrapeRun) -> None:
        """Persist the final status, metadata and error of a run."""
