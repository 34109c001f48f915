"""
Plugin system for metric collection.

This package provides the collector contract, the registry that decides
which collectors run, and the built-in collectors:
- BuildTimeCollector ("buildTime"): build duration
- TestSuiteCollector ("tests"): per-test durations from pytest
- ProfilerCollector ("profiler"): cProfile function timings
- SystemResourceCollector ("system"): host memory, disk and CPU via psutil

Example:
    from perf_aggregator.collectors import CollectorRegistry

    registry = CollectorRegistry(enabled_collectors=["buildTime", "tests"])
    registry.register_default_collectors()
"""

from perf_aggregator.collectors.base import (
    BaseCollector,
    CollectionContext,
    MetricCollector,
    ProcessResult,
)
from perf_aggregator.collectors.build_time import BuildTimeCollector
from perf_aggregator.collectors.profiler import ProfilerCollector
from perf_aggregator.collectors.registry import DEFAULT_COLLECTOR_FACTORIES, CollectorRegistry
from perf_aggregator.collectors.system_resources import SystemResourceCollector
from perf_aggregator.collectors.test_suite import TestSuiteCollector

__all__ = [
    "BaseCollector",
    "CollectionContext",
    "MetricCollector",
    "ProcessResult",
    "BuildTimeCollector",
    "ProfilerCollector",
    "SystemResourceCollector",
    "TestSuiteCollector",
    "CollectorRegistry",
    "DEFAULT_COLLECTOR_FACTORIES",
]
