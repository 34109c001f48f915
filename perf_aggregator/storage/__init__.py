"""
Storage layer for performance metrics.

This package provides the storage abstraction and its two backends:
- InMemoryMetricsStorage: Ephemeral, for short-lived runs and tests
- FileMetricsStorage: Durable, one JSON file per record grouped by project

Both are guarded by an AsyncReadWriteLock: reads overlap, writes and
retention sweeps are exclusive.

Example:
    from perf_aggregator.storage import create_metrics_storage

    storage = create_metrics_storage(StorageSettings(type="file", path="./perf"))
    await storage.store_metrics(records)
    latest = await storage.retrieve_latest_metrics("my-app", limit=10)
"""

from .base import MetricsStorage
from .file_storage import FileMetricsStorage
from .locking import AsyncReadWriteLock
from .memory_storage import InMemoryMetricsStorage
from .factory import create_metrics_storage

__all__ = [
    "MetricsStorage",
    "FileMetricsStorage",
    "InMemoryMetricsStorage",
    "AsyncReadWriteLock",
    "create_metrics_storage",
]
