"""
Performance metric aggregation.

Collects performance measurements from independently-fallible sources,
normalizes them into MetricRecords, persists them by project/time/commit,
and produces reports that classify changes against a baseline commit.

Example:
    from perf_aggregator import Configuration, MetricsAggregator, create_metrics_storage

    config = Configuration.from_yaml("perf.yaml")
    aggregator = MetricsAggregator(config, create_metrics_storage(config.storage))
    aggregator.register_default_collectors()

    records = await aggregator.collect_metrics("./my-project")
    report = await aggregator.generate_report()
"""

from perf_aggregator.core.aggregator import (
    CollectionRoundMetrics,
    CollectorOutcome,
    MetricsAggregator,
)
from perf_aggregator.core.config import Configuration, configure_logging
from perf_aggregator.core.models import MetricRecord, MetricSource, MetricType, Provenance, TimeRange
from perf_aggregator.reporting import PerformanceReport, ReportGenerator
from perf_aggregator.storage import create_metrics_storage

__all__ = [
    "CollectionRoundMetrics",
    "CollectorOutcome",
    "Configuration",
    "MetricRecord",
    "MetricSource",
    "MetricType",
    "MetricsAggregator",
    "PerformanceReport",
    "Provenance",
    "ReportGenerator",
    "TimeRange",
    "configure_logging",
    "create_metrics_storage",
]

__version__ = "1.0.0"
