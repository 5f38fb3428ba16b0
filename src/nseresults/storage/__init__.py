"""Storage backends."""

from __future__ import annotations

from nseresults.config import ResultsConfig, StorageBackendType
from nseresults.storage.base import ResultsStorage, quarterly_results_frame
from nseresults.storage.memory import MemoryStorage


def create_storage(config: ResultsConfig | None = None) -> ResultsStorage:
    """Instantiate the backend named by ``config.storage_backend``."""
    config = config or ResultsConfig()
    if config.storage_backend is StorageBackendType.PARQUET:
        from nseresults.storage.parquet import ParquetStorage

        return ParquetStorage(config.storage_dir)
    return MemoryStorage()


__all__ = ["MemoryStorage", "ResultsStorage", "create_storage", "quarterly_results_frame"]
