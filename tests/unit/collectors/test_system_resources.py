"""
Unit tests for SystemResourceCollector.

psutil is replaced with a mock so samples are deterministic.
"""

import sys
from collections import namedtuple
from unittest.mock import MagicMock, patch

import pytest

from perf_aggregator.collectors.system_resources import BYTES_PER_MB, SystemResourceCollector
from perf_aggregator.core.models import MetricSource, MetricType, Provenance

DiskCounters = namedtuple("DiskCounters", ["read_bytes", "write_bytes"])
VirtualMemory = namedtuple("VirtualMemory", ["used", "percent"])


@pytest.fixture
def mock_psutil():
    fake = MagicMock()
    fake.disk_io_counters.side_effect = [
        DiskCounters(read_bytes=0, write_bytes=0),
        DiskCounters(read_bytes=3 * BYTES_PER_MB, write_bytes=1 * BYTES_PER_MB),
    ]
    fake.cpu_percent.return_value = 37.5
    fake.virtual_memory.return_value = VirtualMemory(used=512 * BYTES_PER_MB, percent=25.0)
    with patch.dict(sys.modules, {"psutil": fake}):
        yield fake


class TestSample:
    """Test raw sampling."""

    def test_sample_values(self, mock_psutil):
        collector = SystemResourceCollector(sample_interval=2.0)
        snapshot = collector.sample()

        assert snapshot["memory_used_mb"] == 512.0
        assert snapshot["memory_percent"] == 25.0
        assert snapshot["cpu_percent"] == 37.5
        assert snapshot["disk_mb_per_second"] == 2.0
        mock_psutil.cpu_percent.assert_called_once_with(interval=2.0)

    def test_disk_counters_unavailable(self, mock_psutil):
        mock_psutil.disk_io_counters.side_effect = None
        mock_psutil.disk_io_counters.return_value = None

        snapshot = SystemResourceCollector().sample()

        assert snapshot["disk_mb_per_second"] is None

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            SystemResourceCollector(sample_interval=0)


class TestSystemCollection:
    """Test record production."""

    @pytest.mark.asyncio
    async def test_records(self, mock_psutil, project_dir):
        collector = SystemResourceCollector(sample_interval=2.0)

        records = await collector.collect_metrics(
            str(project_dir), "app", Provenance(commit_hash="abc")
        )

        by_type = {r.type: r for r in records}
        assert set(by_type) == {MetricType.MEMORY_USAGE, MetricType.CUSTOM, MetricType.DISK_IO}
        assert all(r.source == MetricSource.SYSTEM for r in records)
        assert all(r.commit_hash == "abc" for r in records)

        assert by_type[MetricType.MEMORY_USAGE].value == 512.0
        assert by_type[MetricType.MEMORY_USAGE].unit == "MB"
        assert by_type[MetricType.DISK_IO].value == 2.0
        assert by_type[MetricType.DISK_IO].unit == "MB/s"

        cpu = by_type[MetricType.CUSTOM]
        assert cpu.display_type == "cpuUsage"
        assert cpu.unit == "%"
        assert cpu.value == 37.5

    @pytest.mark.asyncio
    async def test_disk_record_skipped_without_counters(self, mock_psutil, project_dir):
        mock_psutil.disk_io_counters.side_effect = None
        mock_psutil.disk_io_counters.return_value = None

        records = await SystemResourceCollector().collect_metrics(str(project_dir), "app")

        assert MetricType.DISK_IO not in {r.type for r in records}
        assert len(records) == 2

    def test_supported_types(self):
        assert SystemResourceCollector().get_supported_metric_types() == frozenset({
            MetricType.MEMORY_USAGE, MetricType.DISK_IO, MetricType.CUSTOM
        })
