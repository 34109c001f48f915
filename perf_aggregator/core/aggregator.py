"""
Metrics aggregation engine.

This module runs collection rounds: every registered collector is invoked
concurrently, the round waits for all of them, and whatever succeeded is
merged and handed to storage.

Key Components:
    - MetricsAggregator: Fan-out / join / merge / persist
    - CollectorOutcome: Result of one collector in one round
    - CollectionRoundMetrics: Diagnostics for one round

Round semantics:
    1. One asyncio task per collector; no collector waits on another
    2. Barrier: the round waits for every task, early finishers do not end it
    3. Merge after the join, single-threaded: union of successful records,
       no deduplication across collectors
    4. Every collector failed -> CollectionFailedError with every error,
       nothing persisted
    5. Otherwise persist the union; a storage failure surfaces as
       AggregatorStorageError and is not retried
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from perf_aggregator.collectors.base import MetricCollector
from perf_aggregator.collectors.registry import CollectorRegistry
from perf_aggregator.core.config import Configuration
from perf_aggregator.core.errors import (
    AggregatorStorageError,
    CollectionFailedError,
    CollectorError,
    ExecutionFailedError,
    InvalidProjectPathError,
)
from perf_aggregator.core.models import MetricRecord, Provenance, TimeRange, utc_now
from perf_aggregator.reporting.generator import ReportGenerator
from perf_aggregator.reporting.models import PerformanceReport
from perf_aggregator.storage.base import MetricsStorage


@dataclass
class CollectorOutcome:
    """
    What one collector produced in one round.

    Attributes:
        collector_id: Id of the collector
        records: Records produced (empty on failure)
        error: Failure, if the collector failed
        duration_seconds: Wall time the collector took
    """
    collector_id: str
    records: List[MetricRecord] = field(default_factory=list)
    error: Optional[CollectorError] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def record_count(self) -> int:
        return len(self.records)


@dataclass
class CollectionRoundMetrics:
    """
    Diagnostics collected during one aggregation round.

    Attributes:
        round_number: Sequential round number for this aggregator
        project_path: Project that was measured
        started_at: When the round started
        duration_seconds: Wall time of the whole round
        outcomes: Per-collector outcomes, in registration order
        records_stored: Number of records handed to storage successfully
    """
    round_number: int
    project_path: str
    started_at: datetime = field(default_factory=utc_now)
    duration_seconds: float = 0.0
    outcomes: List[CollectorOutcome] = field(default_factory=list)
    records_stored: int = 0

    @property
    def succeeded_collectors(self) -> List[str]:
        return [o.collector_id for o in self.outcomes if o.succeeded]

    @property
    def failed_collectors(self) -> List[str]:
        return [o.collector_id for o in self.outcomes if not o.succeeded]

    @property
    def errors(self) -> List[CollectorError]:
        return [o.error for o in self.outcomes if o.error is not None]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round_number": self.round_number,
            "project_path": self.project_path,
            "started_at": self.started_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "records_stored": self.records_stored,
            "outcomes": [
                {
                    "collector_id": o.collector_id,
                    "record_count": o.record_count,
                    "error": str(o.error) if o.error else None,
                    "duration_seconds": o.duration_seconds,
                }
                for o in self.outcomes
            ],
        }


class MetricsAggregator:
    """
    Concurrent aggregation engine.

    Asks the registry for the active collectors, runs them concurrently,
    merges what succeeds and persists it. Report generation and the
    retention sweep read and prune the same storage.
    """

    def __init__(
        self,
        configuration: Configuration,
        storage: MetricsStorage,
        registry: Optional[CollectorRegistry] = None,
        log=None
    ):
        """
        Initialize the aggregator.

        Args:
            configuration: Project configuration (read-only)
            storage: Backend that receives merged records
            registry: Collector registry; built from the configuration when None
            log: Optional loguru logger threaded to owned components
        """
        self.configuration = configuration
        self.storage = storage
        self._base_log = log or logger
        self._log = self._base_log.bind(component="MetricsAggregator")
        self.registry = registry or CollectorRegistry(
            enabled_collectors=configuration.enabled_collectors,
            collector_options={
                collector_id: configuration.collector_options(collector_id)
                for collector_id in configuration.enabled_collectors
            },
            log=self._base_log
        )
        self.report_generator = ReportGenerator(configuration, storage, log=self._base_log)

        # Aggregation statistics
        self.total_rounds = 0
        self.total_records_collected = 0
        self.total_collector_failures = 0
        self.total_round_time = 0.0
        self.last_round: Optional[CollectionRoundMetrics] = None

        self._log.info(f"Initialized MetricsAggregator for project: {configuration.project_name}")

    def register_collector(self, collector: MetricCollector) -> bool:
        return self.registry.register_collector(collector)

    def register_default_collectors(self) -> int:
        return self.registry.register_default_collectors()

    async def collect_metrics(
        self,
        project_path: str,
        provenance: Optional[Provenance] = None
    ) -> List[MetricRecord]:
        """
        Run one aggregation round.

        Args:
            project_path: Root directory of the project to measure
            provenance: Commit/branch stamped on every produced record

        Returns:
            Union of all successful collectors' records (already stored)

        Raises:
            InvalidProjectPathError: If project_path is not a directory
            CollectionFailedError: If every collector failed
            AggregatorStorageError: If persisting the merged records failed
        """
        log = self._log.bind(context="MetricsAggregator.collect_metrics")
        path = Path(project_path)
        if not path.is_dir():
            log.error(f"Project path is not a directory: {project_path}")
            raise InvalidProjectPathError(str(project_path))

        collectors = self.registry.collectors
        round_metrics = CollectionRoundMetrics(
            round_number=self.total_rounds + 1,
            project_path=str(path)
        )
        self.total_rounds += 1
        self.last_round = round_metrics

        if not collectors:
            log.warning("No collectors registered; nothing to collect")
            return []

        log.info(f"Starting metrics collection for project at {path} with {len(collectors)} collectors")
        start = time.perf_counter()

        # Fan out, then barrier: every collector reports back before merging
        outcomes = await asyncio.gather(*(
            self._run_collector(collector, str(path), provenance)
            for collector in collectors
        ))

        round_metrics.outcomes = list(outcomes)
        round_metrics.duration_seconds = time.perf_counter() - start
        self.total_round_time += round_metrics.duration_seconds

        all_metrics: List[MetricRecord] = []
        errors: List[CollectorError] = []
        for outcome in outcomes:
            if outcome.succeeded:
                all_metrics.extend(outcome.records)
                log.info(f"{outcome.collector_id} collected {outcome.record_count} metrics")
            else:
                errors.append(outcome.error)
                log.error(f"Error collecting metrics with {outcome.collector_id}: {outcome.error}")

        self.total_collector_failures += len(errors)

        if len(errors) == len(outcomes):
            log.error(f"All {len(errors)} collectors failed, nothing stored")
            raise CollectionFailedError(errors)

        try:
            await self.storage.store_metrics(all_metrics)
        except Exception as e:
            log.error(f"Failed to store metrics: {e}")
            raise AggregatorStorageError(e) from e

        round_metrics.records_stored = len(all_metrics)
        self.total_records_collected += len(all_metrics)
        log.info(
            f"Successfully stored {len(all_metrics)} metrics "
            f"({len(errors)} of {len(outcomes)} collectors failed) "
            f"in {round_metrics.duration_seconds:.2f}s"
        )
        return all_metrics

    async def _run_collector(
        self,
        collector: MetricCollector,
        project_path: str,
        provenance: Optional[Provenance]
    ) -> CollectorOutcome:
        """Invoke one collector; never raises except on cancellation."""
        start = time.perf_counter()
        outcome = CollectorOutcome(collector_id=collector.id)
        try:
            outcome.records = list(await collector.collect_metrics(
                project_path, self.configuration.project_name, provenance
            ))
        except CollectorError as e:
            e.collector_id = e.collector_id or collector.id
            outcome.error = e
        except Exception as e:
            # Collectors outside BaseCollector can raise anything
            outcome.error = ExecutionFailedError(f"{type(e).__name__}: {e}", collector_id=collector.id)
        outcome.duration_seconds = time.perf_counter() - start
        return outcome

    async def generate_report(self, time_range: Optional[TimeRange] = None) -> PerformanceReport:
        return await self.report_generator.generate_report(time_range)

    async def apply_retention(self, now: Optional[datetime] = None) -> int:
        """
        Delete records older than the configured retention period.

        Returns:
            Number of records removed
        """
        log = self._log.bind(context="MetricsAggregator.apply_retention")
        cutoff = (now or utc_now()) - timedelta(days=self.configuration.storage.retention_days)
        log.info(f"Applying {self.configuration.storage.retention_days}-day retention (cutoff {cutoff.isoformat()})")
        return await self.storage.delete_metrics(cutoff)

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get aggregator statistics.

        Returns:
            Dictionary with round counts, totals and the last round's diagnostics
        """
        return {
            "project_name": self.configuration.project_name,
            "registered_collectors": self.registry.list_collectors(),
            "total_rounds": self.total_rounds,
            "total_records_collected": self.total_records_collected,
            "total_collector_failures": self.total_collector_failures,
            "average_round_time": (
                self.total_round_time / self.total_rounds if self.total_rounds else 0.0
            ),
            "last_round": self.last_round.to_dict() if self.last_round else None,
        }
