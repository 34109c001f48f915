"""
Factory functions for creating storage components.

Provides a single entry point that turns the storage section of the
configuration into a ready-to-use backend.
"""

from pathlib import Path

from perf_aggregator.core.config import StorageSettings
from perf_aggregator.storage.base import MetricsStorage
from perf_aggregator.storage.file_storage import FileMetricsStorage
from perf_aggregator.storage.memory_storage import InMemoryMetricsStorage

DEFAULT_FILE_STORAGE_PATH = ".perf-aggregator/storage"


def create_metrics_storage(settings: StorageSettings, log=None) -> MetricsStorage:
    """
    Create a metrics storage backend.

    Args:
        settings: Storage settings ('memory' or 'file' backend)
        log: Optional loguru logger handed to the backend

    Returns:
        Configured storage instance

    Raises:
        ValueError: If the backend type has no implementation

    Example:
        storage = create_metrics_storage(StorageSettings(type="file", path="./perf"))
    """
    if settings.type == "memory":
        return InMemoryMetricsStorage(log=log)
    elif settings.type == "file":
        base_path = Path(settings.path or DEFAULT_FILE_STORAGE_PATH)
        return FileMetricsStorage(base_path=base_path, log=log)
    else:
        raise ValueError(f"Unsupported storage backend: {settings.type}")
