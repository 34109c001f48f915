"""
In-memory metrics storage.

Non-durable backend for short-lived runs and tests. Records are keyed by
(project, id) in insertion order and guarded by a readers-writer lock;
storing a record whose id already exists replaces the earlier copy.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from perf_aggregator.core.models import MetricRecord, MetricType, TimeRange, ensure_utc
from perf_aggregator.storage.base import MetricsStorage, newest_first, validate_limit
from perf_aggregator.storage.locking import AsyncReadWriteLock


class InMemoryMetricsStorage(MetricsStorage):
    """Ephemeral storage backend; contents are lost when the process exits."""

    def __init__(self, log=None):
        self._records: Dict[Tuple[str, str], MetricRecord] = {}
        self._lock = AsyncReadWriteLock()
        self._log = (log or logger).bind(component="InMemoryMetricsStorage")
        self._log.info("Initialized InMemoryMetricsStorage")

    def __len__(self) -> int:
        return len(self._records)

    async def store_metrics(self, records: Sequence[MetricRecord]) -> None:
        async with self._lock.write():
            for record in records:
                self._records[(record.project_name, record.id)] = record
        self._log.debug(f"Stored {len(records)} records ({len(self._records)} total)")

    async def retrieve_metrics(self, project_name: str, time_range: TimeRange) -> List[MetricRecord]:
        return await self._select(project_name, time_range=time_range)

    async def retrieve_metrics_for_commit(self, commit_hash: str, project_name: str) -> List[MetricRecord]:
        return await self._select(project_name, commit_hash=commit_hash)

    async def retrieve_metrics_by_type(
        self,
        metric_type: MetricType,
        project_name: str,
        time_range: TimeRange
    ) -> List[MetricRecord]:
        return await self._select(project_name, time_range=time_range, metric_type=metric_type)

    async def retrieve_latest_metrics(self, project_name: str, limit: int) -> List[MetricRecord]:
        validate_limit(limit)
        records = await self._select(project_name)
        return newest_first(records, limit)

    async def delete_metrics(self, older_than: datetime) -> int:
        cutoff = ensure_utc(older_than)
        async with self._lock.write():
            count_before = len(self._records)
            self._records = {
                key: r for key, r in self._records.items() if r.timestamp >= cutoff
            }
            deleted = count_before - len(self._records)

        self._log.info(f"Retention sweep removed {deleted} records older than {cutoff.isoformat()}")
        return deleted

    async def _select(
        self,
        project_name: str,
        time_range: Optional[TimeRange] = None,
        commit_hash: Optional[str] = None,
        metric_type: Optional[MetricType] = None
    ) -> List[MetricRecord]:
        async with self._lock.read():
            return [
                r for r in self._records.values()
                if r.project_name == project_name
                and (time_range is None or time_range.contains(r.timestamp))
                and (commit_hash is None or r.commit_hash == commit_hash)
                and (metric_type is None or r.type == metric_type)
            ]
