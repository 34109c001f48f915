"""
File-based metrics storage.

Each record is persisted as its own JSON document, grouped by project:

Storage structure:
    {base_path}/metrics/
    ├── {project_name}/
    │   ├── {quoted_record_id}.json
    │   └── {quoted_record_id}.json
    └── {other_project}/
        └── {quoted_record_id}.json

There is no index: listing a project directory is the query mechanism.
A file that cannot be decoded during a scan is skipped with a warning so
one corrupted record never aborts a whole query.
Storing a record whose id already exists replaces the earlier copy.
"""

import asyncio
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence
from urllib.parse import quote

from loguru import logger

from perf_aggregator.core.errors import StorageFailureError
from perf_aggregator.core.models import MetricRecord, MetricType, TimeRange, ensure_utc
from perf_aggregator.storage.base import MetricsStorage, newest_first, validate_limit
from perf_aggregator.storage.locking import AsyncReadWriteLock

RECORD_SUFFIX = ".json"


class FileMetricsStorage(MetricsStorage):
    """
    Durable storage backend writing one JSON file per record.

    Features:
    - Records survive process restarts
    - Atomic per-record writes (temp file + rename)
    - Readers-writer locking around the storage root
    - Corrupted files skipped during scans
    """

    def __init__(self, base_path: str | Path, log=None):
        """
        Initialize file metrics storage.

        Args:
            base_path: Storage root; records live under ``{base_path}/metrics``
            log: Optional loguru logger to bind component context on
        """
        self.base_path = Path(base_path)
        self.metrics_path = self.base_path / "metrics"
        self._lock = AsyncReadWriteLock()
        self._log = (log or logger).bind(component="FileMetricsStorage")

        try:
            self.metrics_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailureError(f"Cannot create storage root {self.metrics_path}: {e}") from e

        self._log.info(f"Initialized FileMetricsStorage at {self.metrics_path}")

    def _get_project_dir(self, project_name: str) -> Path:
        """Get directory for a project (path separators are neutralised)."""
        safe_name = project_name.replace("/", "_").replace("\\", "_")
        if safe_name in ("", ".", ".."):
            safe_name = f"_{safe_name}_"
        return self.metrics_path / safe_name

    def _get_record_file(self, record: MetricRecord) -> Path:
        """Record file name is the percent-encoded id; the real id lives in the JSON."""
        return self._get_project_dir(record.project_name) / f"{quote(record.id, safe='')}{RECORD_SUFFIX}"

    async def store_metrics(self, records: Sequence[MetricRecord]) -> None:
        """Write each record to its own file under its project directory."""
        if not records:
            return

        def _write():
            for record in records:
                # Project directories are created lazily, under the write lock
                record_file = self._get_record_file(record)
                record_file.parent.mkdir(parents=True, exist_ok=True)
                tmp_file = record_file.with_name(record_file.name + ".tmp")
                with open(tmp_file, "w", encoding="utf-8") as f:
                    f.write(record.to_json())
                os.replace(tmp_file, record_file)

        async with self._lock.write():
            try:
                await asyncio.get_running_loop().run_in_executor(None, _write)
            except OSError as e:
                self._log.error(f"Failed to store {len(records)} records: {e}")
                raise StorageFailureError(str(e)) from e

        self._log.debug(f"Stored {len(records)} records")

    async def retrieve_metrics(self, project_name: str, time_range: TimeRange) -> List[MetricRecord]:
        return await self._scan_project(
            project_name,
            lambda r: time_range.contains(r.timestamp)
        )

    async def retrieve_metrics_for_commit(self, commit_hash: str, project_name: str) -> List[MetricRecord]:
        return await self._scan_project(
            project_name,
            lambda r: r.commit_hash == commit_hash
        )

    async def retrieve_metrics_by_type(
        self,
        metric_type: MetricType,
        project_name: str,
        time_range: TimeRange
    ) -> List[MetricRecord]:
        in_range = await self.retrieve_metrics(project_name, time_range)
        return [r for r in in_range if r.type == metric_type]

    async def retrieve_latest_metrics(self, project_name: str, limit: int) -> List[MetricRecord]:
        validate_limit(limit)
        records = await self._scan_project(project_name)
        return newest_first(records, limit)

    async def delete_metrics(self, older_than: datetime) -> int:
        """Remove every record older than the cutoff, across all projects."""
        cutoff = ensure_utc(older_than)

        def _sweep() -> int:
            deleted = 0
            for project_dir in self.metrics_path.iterdir():
                if not project_dir.is_dir():
                    continue
                for record_file in project_dir.iterdir():
                    record = self._load_record(record_file)
                    if record is None or record.timestamp >= cutoff:
                        continue
                    try:
                        record_file.unlink()
                        deleted += 1
                    except OSError as e:
                        self._log.warning(f"Could not delete {record_file}: {e}")
            return deleted

        async with self._lock.write():
            try:
                deleted = await asyncio.get_running_loop().run_in_executor(None, _sweep)
            except OSError as e:
                raise StorageFailureError(str(e)) from e

        self._log.info(f"Retention sweep removed {deleted} records older than {cutoff.isoformat()}")
        return deleted

    async def _scan_project(
        self,
        project_name: str,
        predicate: Optional[Callable[[MetricRecord], bool]] = None
    ) -> List[MetricRecord]:
        """Load every decodable record of a project that matches the predicate."""
        project_dir = self._get_project_dir(project_name)

        def _read() -> List[MetricRecord]:
            if not project_dir.exists():
                return []
            records = []
            for record_file in project_dir.iterdir():
                record = self._load_record(record_file)
                if record is None or record.project_name != project_name:
                    continue
                if predicate is None or predicate(record):
                    records.append(record)
            return records

        async with self._lock.read():
            try:
                return await asyncio.get_running_loop().run_in_executor(None, _read)
            except OSError as e:
                raise StorageFailureError(str(e)) from e

    def _load_record(self, record_file: Path) -> Optional[MetricRecord]:
        """Decode one record file; None if it is not a record or is corrupted."""
        if record_file.suffix != RECORD_SUFFIX or not record_file.is_file():
            return None
        try:
            with open(record_file, "r", encoding="utf-8") as f:
                return MetricRecord.from_json(f.read())
        except (OSError, ValueError, KeyError, TypeError) as e:
            self._log.warning(f"Skipping unreadable record file {record_file}: {e}")
            return None
