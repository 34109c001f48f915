"""
Collector registry.

Holds the set of collectors that take part in aggregation rounds. The
configuration, not code presence, decides what runs: a collector whose id
is not in ``enabled_collectors`` is skipped (logged, not an error), so the
same installation works on machines missing some of the underlying tools.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from loguru import logger

from perf_aggregator.collectors.base import MetricCollector
from perf_aggregator.collectors.build_time import BuildTimeCollector
from perf_aggregator.collectors.profiler import ProfilerCollector
from perf_aggregator.collectors.system_resources import SystemResourceCollector
from perf_aggregator.collectors.test_suite import TestSuiteCollector
from perf_aggregator.core.errors import ConfigurationError

CollectorFactory = Callable[..., MetricCollector]

# Every built-in collector, keyed by id. Options from the configuration are
# passed to the factory as keyword arguments.
DEFAULT_COLLECTOR_FACTORIES: Dict[str, CollectorFactory] = {
    BuildTimeCollector.id: BuildTimeCollector,
    TestSuiteCollector.id: TestSuiteCollector,
    ProfilerCollector.id: ProfilerCollector,
    SystemResourceCollector.id: SystemResourceCollector,
}


class CollectorRegistry:
    """
    Registry of active collectors.

    Manages registration, enablement filtering and lookup. Registration
    order is preserved and is the order collectors are started in.
    """

    def __init__(
        self,
        enabled_collectors: Iterable[str],
        collector_options: Optional[Mapping[str, Mapping[str, Any]]] = None,
        log=None
    ):
        """
        Args:
            enabled_collectors: Collector ids allowed to become active
            collector_options: Keyword arguments per built-in collector id
            log: Optional loguru logger, also handed to built-in collectors
        """
        self.enabled_collectors = frozenset(enabled_collectors)
        self.collector_options = {k: dict(v or {}) for k, v in (collector_options or {}).items()}
        self._base_log = log or logger
        self._log = self._base_log.bind(component="CollectorRegistry")
        self._collectors: Dict[str, MetricCollector] = {}
        self._log.info(f"Initialized CollectorRegistry (enabled: {sorted(self.enabled_collectors)})")

    def register_collector(self, collector: MetricCollector) -> bool:
        """
        Register a collector if the configuration enables it.

        Args:
            collector: MetricCollector instance

        Returns:
            True if the collector became active, False if it was skipped

        Raises:
            TypeError: If collector doesn't implement MetricCollector protocol
            ValueError: If a collector with the same id is already active
        """
        if not isinstance(collector, MetricCollector):
            raise TypeError(
                f"Collector must implement MetricCollector protocol, got {type(collector)}"
            )

        if collector.id not in self.enabled_collectors:
            self._log.info(f"Skipped disabled collector: {collector.name} ({collector.id})")
            return False

        if collector.id in self._collectors:
            raise ValueError(f"Collector '{collector.id}' already registered")

        self._collectors[collector.id] = collector
        self._log.info(f"Registered collector: {collector.name} ({collector.id})")
        return True

    def register_default_collectors(self) -> int:
        """
        Register every enabled built-in collector.

        Returns:
            Number of collectors activated

        Raises:
            ConfigurationError: If a collector's options are invalid
        """
        activated = 0
        for collector_id, factory in DEFAULT_COLLECTOR_FACTORIES.items():
            if collector_id not in self.enabled_collectors:
                self._log.info(f"Skipped disabled collector: {collector_id}")
                continue
            if collector_id in self._collectors:
                continue

            options = self.collector_options.get(collector_id, {})
            try:
                collector = factory(log=self._base_log, **options)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid options for collector '{collector_id}': {e}") from e

            if not collector.is_available():
                self._log.warning(
                    f"Collector {collector_id} is enabled but its tool is unavailable; "
                    "it will report a failure each round"
                )
            if self.register_collector(collector):
                activated += 1

        unknown = self.enabled_collectors - set(DEFAULT_COLLECTOR_FACTORIES) - set(self._collectors)
        if unknown:
            self._log.debug(f"Enabled ids without a built-in collector: {sorted(unknown)}")

        self._log.info(f"Registered {len(self._collectors)} collectors")
        return activated

    def unregister(self, collector_id: str) -> None:
        """
        Raises:
            KeyError: If collector_id not found
        """
        if collector_id not in self._collectors:
            raise KeyError(f"Collector '{collector_id}' not registered")

        del self._collectors[collector_id]
        self._log.info(f"Unregistered collector: {collector_id}")

    def has_collector(self, collector_id: str) -> bool:
        return collector_id in self._collectors

    def get_collector(self, collector_id: str) -> MetricCollector:
        if collector_id not in self._collectors:
            raise KeyError(f"Collector '{collector_id}' not registered")
        return self._collectors[collector_id]

    def list_collectors(self) -> List[str]:
        return list(self._collectors.keys())

    @property
    def collectors(self) -> List[MetricCollector]:
        return list(self._collectors.values())

    def __len__(self) -> int:
        return len(self._collectors)

    def get_registry_info(self) -> Dict[str, Any]:
        """
        Get information about the registry.

        Returns:
            Dictionary with:
            - count: Number of active collectors
            - enabled: Enabled ids from the configuration
            - collectors: List of collector info dicts
        """
        collectors_info = []
        for collector_id, collector in self._collectors.items():
            collectors_info.append({
                "id": collector_id,
                "name": collector.name,
                "available": collector.is_available(),
                "metric_types": sorted(t.value for t in collector.get_supported_metric_types()),
            })

        return {
            "count": len(self._collectors),
            "enabled": sorted(self.enabled_collectors),
            "collectors": collectors_info,
        }
