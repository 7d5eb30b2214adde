"""Storage collaborators for the similarity batch job."""
from listing_intel.storage.base import SimilarityStore, StoreError
from listing_intel.storage.csv_store import CsvSimilarityStore
from listing_intel.storage.memory_store import InMemorySimilarityStore

__all__ = ["SimilarityStore", "StoreError", "CsvSimilarityStore", "InMemorySimilarityStore"]
