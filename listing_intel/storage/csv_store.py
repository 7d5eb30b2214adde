"""
CSV-directory store backed by pandas.

Expected files in `data_dir` (missing inputs are treated as empty):
    competitor_pairs.csv   tracked_app_slug, app_slug
    apps.csv               slug, name, subtitle
    app_snapshots.csv      app_slug, scraped_at, categories (JSON), app_introduction
    keyword_rankings.csv   app_slug, keyword_id, position, scraped_at
Written:
    similarity_scores.csv  one row per canonical pair
    scrape_runs.csv        one row per batch run
"""
import json
import os
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set

import pandas as pd
from loguru import logger

from listing_intel.models import AppInfo, AppSnapshot, CompetitorPair, ScrapeRun, SimilarityResult
from listing_intel.storage.base import SimilarityStore, StoreError

SCORE_COLUMNS = [
    "app_slug_a", "app_slug_b", "overall_score", "category_score",
    "feature_score", "keyword_score", "text_score", "computed_at",
]
RUN_COLUMNS = [
    "id", "scraper_type", "status", "triggered_by", "started_at",
    "completed_at", "metadata", "error",
]


def _none_if_na(value):
    return None if pd.isna(value) else value


class CsvSimilarityStore(SimilarityStore):

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self._scores: Optional[pd.DataFrame] = None

    def _path(self, name: str) -> str:
        return os.path.join(self.data_dir, name)

    def _read(self, name: str, columns: List[str]) -> pd.DataFrame:
        path = self._path(name)
        if not os.path.exists(path):
            logger.debug(f"{path} not found, treating as empty")
            return pd.DataFrame(columns=columns)
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])
        except (OSError, ValueError) as e:
            raise StoreError(f"Could not read {path}: {e}") from e
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise StoreError(f"{path} is missing columns {missing}")
        return df

    def _write(self, df: pd.DataFrame, name: str) -> None:
        path = self._path(name)
        tmp_path = f"{path}.tmp"
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            df.to_csv(tmp_path, index=False)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StoreError(f"Could not write {path}: {e}") from e

    async def get_competitor_pairs(self) -> List[CompetitorPair]:
        df = self._read("competitor_pairs.csv", ["tracked_app_slug", "app_slug"])
        df = df.dropna(subset=["tracked_app_slug", "app_slug"]).drop_duplicates(["tracked_app_slug", "app_slug"])
        return [
            CompetitorPair(tracked_app_slug=row.tracked_app_slug, app_slug=row.app_slug)
            for row in df.itertuples(index=False)
        ]

    async def get_latest_snapshots(self, slugs: Iterable[str]) -> Dict[str, AppSnapshot]:
        df = self._read("app_snapshots.csv", ["app_slug", "scraped_at", "categories", "app_introduction"])
        df = df[df["app_slug"].isin(set(slugs))]
        if df.empty:
            return {}
        df = df.assign(scraped_at=pd.to_datetime(df["scraped_at"], errors="coerce"))
        latest = df.sort_values("scraped_at", na_position="first").groupby("app_slug").tail(1)

        snapshots = {}
        for row in latest.itertuples(index=False):
            try:
                categories = json.loads(row.categories) if _none_if_na(row.categories) else []
            except json.JSONDecodeError as e:
                raise StoreError(f"Invalid categories JSON for '{row.app_slug}': {e}") from e
            snapshots[row.app_slug] = AppSnapshot(
                app_slug=row.app_slug,
                categories=categories,
                app_introduction=_none_if_na(row.app_introduction),
            )
        return snapshots

    async def get_app_info(self, slugs: Iterable[str]) -> Dict[str, AppInfo]:
        df = self._read("apps.csv", ["slug", "name", "subtitle"])
        df = df[df["slug"].isin(set(slugs))]
        return {
            row.slug: AppInfo(slug=row.slug, name=_none_if_na(row.name) or "", subtitle=_none_if_na(row.subtitle))
            for row in df.itertuples(index=False)
        }

    async def get_ranked_keyword_ids(self, slugs: Iterable[str]) -> Dict[str, Set[str]]:
        df = self._read("keyword_rankings.csv", ["app_slug", "keyword_id", "position", "scraped_at"])
        df = df[df["app_slug"].isin(set(slugs))].dropna(subset=["position"])
        ranked: Dict[str, Set[str]] = {}
        for row in df.drop_duplicates(["app_slug", "keyword_id"]).itertuples(index=False):
            ranked.setdefault(row.app_slug, set()).add(str(row.keyword_id))
        return ranked

    async def upsert_similarity_scores(self, results: List[SimilarityResult], computed_at: date) -> None:
        if self._scores is None:
            self._scores = self._read("similarity_scores.csv", SCORE_COLUMNS)[SCORE_COLUMNS]

        rows = pd.DataFrame(
            [
                [
                    r.app_slug_a, r.app_slug_b,
                    f"{r.overall:.4f}", f"{r.category:.4f}", f"{r.feature:.4f}",
                    f"{r.keyword:.4f}", f"{r.text:.4f}", computed_at.isoformat(),
                ]
                for r in results
            ],
            columns=SCORE_COLUMNS,
        )
        # New rows win over existing rows for the same pair
        combined = pd.concat([self._scores, rows], ignore_index=True)
        self._scores = combined.drop_duplicates(["app_slug_a", "app_slug_b"], keep="last").reset_index(drop=True)
        self._write(self._scores, "similarity_scores.csv")

    async def start_run(self, scraper_type: str, triggered_by: str) -> ScrapeRun:
        runs = self._read("scrape_runs.csv", RUN_COLUMNS)
        run_id = int(pd.to_numeric(runs["id"]).max()) + 1 if not runs.empty else 1
        run = ScrapeRun(
            id=run_id,
            scraper_type=scraper_type,
            triggered_by=triggered_by,
            started_at=datetime.now(),
        )
        self._write(pd.concat([runs, pd.DataFrame([self._run_row(run)])], ignore_index=True), "scrape_runs.csv")
        return run

    async def finish_run(self, run: ScrapeRun) -> None:
        runs = self._read("scrape_runs.csv", RUN_COLUMNS)
        runs = runs[pd.to_numeric(runs["id"]) != run.id]
        self._write(pd.concat([runs, pd.DataFrame([self._run_row(run)])], ignore_index=True), "scrape_runs.csv")

    @staticmethod
    def _run_row(run: ScrapeRun) -> dict:
        return {
            "id": run.id,
            "scraper_type": run.scraper_type,
            "status": run.status,
            "triggered_by": run.triggered_by,
            "started_at": run.started_at.isoformat() if run.started_at else None,
            "completed_at": run.completed_at.isoformat() if run.completed_at else None,
            "metadata": json.dumps(run.metadata),
            "error": run.error,
        }
