"""
Unit tests for CollectorRegistry.

Tests registration, enablement filtering and the built-in defaults.
"""

import pytest

from perf_aggregator.collectors.build_time import BuildTimeCollector
from perf_aggregator.collectors.registry import DEFAULT_COLLECTOR_FACTORIES, CollectorRegistry
from perf_aggregator.collectors.system_resources import SystemResourceCollector
from perf_aggregator.core.errors import ConfigurationError
from tests.fixtures.collectors import StaticCollector


class TestRegistration:
    """Test manual registration."""

    def test_register_enabled_collector(self):
        registry = CollectorRegistry(enabled_collectors=["build"])
        collector = StaticCollector("build")

        assert registry.register_collector(collector) is True
        assert registry.has_collector("build")
        assert registry.get_collector("build") is collector
        assert len(registry) == 1

    def test_disabled_collector_is_skipped(self):
        registry = CollectorRegistry(enabled_collectors=["build"])

        assert registry.register_collector(StaticCollector("profiler")) is False
        assert not registry.has_collector("profiler")
        assert len(registry) == 0

    def test_duplicate_id_rejected(self):
        registry = CollectorRegistry(enabled_collectors=["build"])
        registry.register_collector(StaticCollector("build"))

        with pytest.raises(ValueError, match="already registered"):
            registry.register_collector(StaticCollector("build"))

    def test_non_collector_rejected(self):
        registry = CollectorRegistry(enabled_collectors=["build"])

        with pytest.raises(TypeError):
            registry.register_collector(object())

    def test_registration_order_preserved(self):
        registry = CollectorRegistry(enabled_collectors=["a", "b", "c"])
        for collector_id in ["c", "a", "b"]:
            registry.register_collector(StaticCollector(collector_id))

        assert registry.list_collectors() == ["c", "a", "b"]
        assert [c.id for c in registry.collectors] == ["c", "a", "b"]

    def test_empty_enabled_list_activates_nothing(self):
        registry = CollectorRegistry(enabled_collectors=[])
        assert registry.register_collector(StaticCollector("build")) is False
        assert registry.collectors == []

    def test_unregister(self):
        registry = CollectorRegistry(enabled_collectors=["build"])
        registry.register_collector(StaticCollector("build"))

        registry.unregister("build")

        assert not registry.has_collector("build")
        with pytest.raises(KeyError):
            registry.unregister("build")

    def test_get_unknown_collector(self):
        with pytest.raises(KeyError):
            CollectorRegistry(enabled_collectors=[]).get_collector("nope")

    def test_registry_info(self):
        registry = CollectorRegistry(enabled_collectors=["build", "tests"])
        registry.register_collector(StaticCollector("build"))

        info = registry.get_registry_info()

        assert info["count"] == 1
        assert info["enabled"] == ["build", "tests"]
        assert info["collectors"][0]["id"] == "build"
        assert info["collectors"][0]["metric_types"] == ["cpuTime"]


class TestDefaultCollectors:
    """Test register_default_collectors."""

    def test_factories_cover_builtin_ids(self):
        assert set(DEFAULT_COLLECTOR_FACTORIES) == {"buildTime", "tests", "profiler", "system"}

    def test_only_enabled_defaults_registered(self):
        registry = CollectorRegistry(enabled_collectors=["buildTime", "system"])

        activated = registry.register_default_collectors()

        assert activated == 2
        assert registry.list_collectors() == ["buildTime", "system"]
        assert isinstance(registry.get_collector("buildTime"), BuildTimeCollector)
        assert isinstance(registry.get_collector("system"), SystemResourceCollector)

    def test_all_defaults(self):
        registry = CollectorRegistry(enabled_collectors=["buildTime", "tests", "profiler", "system"])
        assert registry.register_default_collectors() == 4

    def test_options_passed_to_factory(self):
        registry = CollectorRegistry(
            enabled_collectors=["buildTime"],
            collector_options={"buildTime": {"command": ["make", "all"], "timeout": 42}},
        )
        registry.register_default_collectors()

        collector = registry.get_collector("buildTime")
        assert collector.command == ["make", "all"]
        assert collector.timeout == 42

    def test_invalid_options(self):
        registry = CollectorRegistry(
            enabled_collectors=["system"],
            collector_options={"system": {"no_such_option": True}},
        )
        with pytest.raises(ConfigurationError, match="system"):
            registry.register_default_collectors()

    def test_already_registered_id_not_replaced(self):
        registry = CollectorRegistry(enabled_collectors=["buildTime", "system"])
        custom = StaticCollector("buildTime")
        registry.register_collector(custom)

        activated = registry.register_default_collectors()

        assert activated == 1
        assert registry.get_collector("buildTime") is custom

    def test_unknown_enabled_ids_are_ignored(self):
        registry = CollectorRegistry(enabled_collectors=["buildTime", "gpu"])
        assert registry.register_default_collectors() == 1
        assert registry.list_collectors() == ["buildTime"]
