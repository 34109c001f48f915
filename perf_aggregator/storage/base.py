"""
Base abstractions for the storage layer.

This module defines the interface every metric storage backend implements.
Records are immutable once written: the interface offers bulk append,
several read queries and an age-based retention sweep, but no update.

Two implementations ship with the package:
1. InMemoryMetricsStorage: ephemeral, for short-lived runs and tests
2. FileMetricsStorage: durable, one JSON file per record
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Sequence

from perf_aggregator.core.models import MetricRecord, MetricType, TimeRange


class MetricsStorage(ABC):
    """
    Abstract interface for metric storage backends.

    Implementations must be safe to share between concurrent tasks:
    reads may overlap each other, writes and deletes are exclusive.
    """

    @abstractmethod
    async def store_metrics(self, records: Sequence[MetricRecord]) -> None:
        """
        Append records (bulk insert).

        A record whose project and id match one already stored replaces it,
        so storing the same record twice keeps a single copy.
        """
        pass

    @abstractmethod
    async def retrieve_metrics(
        self,
        project_name: str,
        time_range: TimeRange
    ) -> List[MetricRecord]:
        """
        Retrieve a project's records inside a time window.

        Args:
            project_name: Project to filter by
            time_range: Window, inclusive on both ends

        Returns:
            Matching records in no particular order
        """
        pass

    @abstractmethod
    async def retrieve_metrics_for_commit(
        self,
        commit_hash: str,
        project_name: str
    ) -> List[MetricRecord]:
        """Retrieve a project's records whose commit hash matches exactly."""
        pass

    @abstractmethod
    async def retrieve_metrics_by_type(
        self,
        metric_type: MetricType,
        project_name: str,
        time_range: TimeRange
    ) -> List[MetricRecord]:
        """Retrieve a project's records of one type inside a time window."""
        pass

    @abstractmethod
    async def retrieve_latest_metrics(
        self,
        project_name: str,
        limit: int
    ) -> List[MetricRecord]:
        """
        Retrieve a project's most recent records.

        Args:
            project_name: Project to filter by
            limit: Maximum number of records to return

        Returns:
            Up to ``limit`` records sorted by timestamp, newest first

        Raises:
            ValueError: If limit is negative
        """
        pass

    @abstractmethod
    async def delete_metrics(self, older_than: datetime) -> int:
        """
        Remove every record (all projects) with ``timestamp < older_than``.

        Returns:
            Number of records removed
        """
        pass


def validate_limit(limit: int) -> None:
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")


def newest_first(records: Sequence[MetricRecord], limit: int) -> List[MetricRecord]:
    """Sort by timestamp descending and keep the first ``limit`` records."""
    return sorted(records, key=lambda r: r.timestamp, reverse=True)[:limit]
