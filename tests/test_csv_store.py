import json

import pandas as pd
import pytest

from listing_intel.similarity import compute_similarity_scores
from listing_intel.storage import CsvSimilarityStore, StoreError

CHAT_CATEGORY = json.dumps([{
    "title": "Chat",
    "url": "https://apps.shopify.com/categories/chat",
    "subcategories": [{"title": "Live", "features": [{"title": "Live chat", "feature_handle": "cf.chat.live"}]}],
}])


@pytest.fixture
def data_dir(tmp_path):
    pd.DataFrame({
        "tracked_app_slug": ["tidio", "gorgias"],
        "app_slug": ["gorgias", "tidio"],
    }).to_csv(tmp_path / "competitor_pairs.csv", index=False)
    pd.DataFrame({
        "slug": ["tidio", "gorgias"],
        "name": ["Tidio Live Chat", "Gorgias Helpdesk"],
        "subtitle": ["Live chat and chatbots", None],
    }).to_csv(tmp_path / "apps.csv", index=False)
    pd.DataFrame({
        "app_slug": ["tidio", "tidio", "gorgias"],
        "scraped_at": ["2024-01-01", "2024-02-01", "2024-02-01"],
        "categories": ["[]", CHAT_CATEGORY, CHAT_CATEGORY],
        "app_introduction": [None, "Chat with shoppers", None],
    }).to_csv(tmp_path / "app_snapshots.csv", index=False)
    pd.DataFrame({
        "app_slug": ["tidio", "gorgias", "gorgias"],
        "keyword_id": ["1", "1", "2"],
        "position": [3, 5, None],
        "scraped_at": ["2024-02-01"] * 3,
    }).to_csv(tmp_path / "keyword_rankings.csv", index=False)
    return tmp_path


@pytest.mark.asyncio
async def test_similarity_run_writes_scores_and_run_record(data_dir):
    run = await compute_similarity_scores(CsvSimilarityStore(str(data_dir)), triggered_by="test")

    scores = pd.read_csv(data_dir / "similarity_scores.csv")
    assert len(scores) == 1
    row = scores.iloc[0]
    assert (row["app_slug_a"], row["app_slug_b"]) == ("gorgias", "tidio")
    assert row["category_score"] == 1.0
    assert row["feature_score"] == 1.0
    assert row["keyword_score"] == 1.0

    runs = pd.read_csv(data_dir / "scrape_runs.csv")
    assert len(runs) == 1
    assert runs.iloc[0]["id"] == run.id == 1
    assert runs.iloc[0]["status"] == "completed"
    assert json.loads(runs.iloc[0]["metadata"])["pairs_computed"] == 1


@pytest.mark.asyncio
async def test_rerun_replaces_existing_scores(data_dir):
    await compute_similarity_scores(CsvSimilarityStore(str(data_dir)), triggered_by="test")
    run = await compute_similarity_scores(CsvSimilarityStore(str(data_dir)), triggered_by="test")

    assert len(pd.read_csv(data_dir / "similarity_scores.csv")) == 1
    assert run.id == 2
    assert len(pd.read_csv(data_dir / "scrape_runs.csv")) == 2


@pytest.mark.asyncio
async def test_latest_snapshot_and_rankings(data_dir):
    store = CsvSimilarityStore(str(data_dir))

    snapshots = await store.get_latest_snapshots(["tidio", "gorgias"])
    ranked = await store.get_ranked_keyword_ids(["tidio", "gorgias"])
    info = await store.get_app_info(["gorgias"])

    assert snapshots["tidio"].app_introduction == "Chat with shoppers"
    assert snapshots["tidio"].categories[0]["title"] == "Chat"
    assert snapshots["gorgias"].app_introduction is None
    assert ranked == {"tidio": {"1"}, "gorgias": {"1"}}
    assert info["gorgias"].subtitle is None


@pytest.mark.asyncio
async def test_missing_input_files_are_empty(tmp_path):
    run = await compute_similarity_scores(CsvSimilarityStore(str(tmp_path)), triggered_by="test")

    assert run.status == "completed"
    assert run.metadata["pairs_computed"] == 0


@pytest.mark.asyncio
async def test_malformed_input_fails_run(data_dir):
    """
    A pairs file without the expected columns fails the run and is recorded.
    """
    pd.DataFrame({"tracked": ["tidio"]}).to_csv(data_dir / "competitor_pairs.csv", index=False)

    with pytest.raises(StoreError):
        await compute_similarity_scores(CsvSimilarityStore(str(data_dir)), triggered_by="test")

    runs = pd.read_csv(data_dir / "scrape_runs.csv")
    assert runs.iloc[0]["status"] == "failed"
    assert "missing columns" in runs.iloc[0]["error"]
