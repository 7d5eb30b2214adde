"""In-process store, used by tests and by callers that already hold the data."""
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from listing_intel.models import AppInfo, AppSnapshot, CompetitorPair, ScrapeRun, SimilarityResult
from listing_intel.storage.base import SimilarityStore


class InMemorySimilarityStore(SimilarityStore):

    def __init__(
        self,
        pairs: Optional[List[CompetitorPair]] = None,
        apps: Optional[List[AppInfo]] = None,
        snapshots: Optional[List[Tuple[datetime, AppSnapshot]]] = None,
        rankings: Optional[List[Tuple[str, str, Optional[int], datetime]]] = None,
    ):
        self.pairs = list(pairs or [])
        self.apps = {a.slug: a for a in apps or []}
        # (scraped_at, snapshot)
        self.snapshots = list(snapshots or [])
        # (app_slug, keyword_id, position, scraped_at)
        self.rankings = list(rankings or [])
        self.scores: Dict[Tuple[str, str], Tuple[SimilarityResult, date]] = {}
        self.runs: List[ScrapeRun] = []

    async def get_competitor_pairs(self) -> List[CompetitorPair]:
        distinct = dict.fromkeys((p.tracked_app_slug, p.app_slug) for p in self.pairs)
        return [CompetitorPair(tracked_app_slug=a, app_slug=b) for a, b in distinct]

    async def get_latest_snapshots(self, slugs: Iterable[str]) -> Dict[str, AppSnapshot]:
        wanted = set(slugs)
        latest: Dict[str, Tuple[datetime, AppSnapshot]] = {}
        for scraped_at, snapshot in self.snapshots:
            if snapshot.app_slug not in wanted:
                continue
            current = latest.get(snapshot.app_slug)
            if current is None or scraped_at > current[0]:
                latest[snapshot.app_slug] = (scraped_at, snapshot)
        return {slug: snapshot for slug, (_, snapshot) in latest.items()}

    async def get_app_info(self, slugs: Iterable[str]) -> Dict[str, AppInfo]:
        return {slug: self.apps[slug] for slug in slugs if slug in self.apps}

    async def get_ranked_keyword_ids(self, slugs: Iterable[str]) -> Dict[str, Set[str]]:
        wanted = set(slugs)
        ranked: Dict[str, Set[str]] = {}
        for app_slug, keyword_id, position, _ in self.rankings:
            if app_slug in wanted and position is not None:
                ranked.setdefault(app_slug, set()).add(str(keyword_id))
        return ranked

    async def upsert_similarity_scores(self, results: List[SimilarityResult], computed_at: date) -> None:
        for result in results:
            self.scores[(result.app_slug_a, result.app_slug_b)] = (result, computed_at)

    async def start_run(self, scraper_type: str, triggered_by: str) -> ScrapeRun:
        run = ScrapeRun(
            id=len(self.runs) + 1,
            scraper_type=scraper_type,
            triggered_by=triggered_by,
            started_at=datetime.now(),
        )
        self.runs.append(run)
        return replace(run)

    async def finish_run(self, run: ScrapeRun) -> None:
        self.runs[run.id - 1] = replace(run)
