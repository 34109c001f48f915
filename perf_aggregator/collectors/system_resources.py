"""
Host resource collector.

Samples the machine running the collection with psutil:
- Memory in use (MB)
- Disk throughput over the sample interval (MB/s)
- CPU usage over the sample interval (percent, custom ``cpuUsage`` type)
"""

import asyncio
import importlib.util
from typing import Any, Dict, List

from perf_aggregator.collectors.base import BaseCollector, CollectionContext
from perf_aggregator.core.errors import ToolNotFoundError
from perf_aggregator.core.models import MetricRecord, MetricSource, MetricType

BYTES_PER_MB = 1024 * 1024


class SystemResourceCollector(BaseCollector):
    """Computes host resource usage during a collection round."""

    id = "system"
    name = "System Resource Collector"
    supported_types = frozenset({MetricType.MEMORY_USAGE, MetricType.DISK_IO, MetricType.CUSTOM})

    def __init__(self, sample_interval: float = 1.0, timeout: float = 30.0, log=None):
        super().__init__(timeout=timeout, log=log)
        if sample_interval <= 0:
            raise ValueError(f"sample_interval must be positive, got {sample_interval}")
        self.sample_interval = sample_interval

    @property
    def description(self) -> str:
        return "Collects host memory, disk and CPU usage with psutil"

    def is_available(self) -> bool:
        return importlib.util.find_spec("psutil") is not None

    def sample(self) -> Dict[str, Any]:
        """
        Take one blocking sample.

        Returns:
            Dictionary with:
            - memory_used_mb: Memory in use
            - memory_percent: Memory in use as a percentage
            - cpu_percent: CPU usage over the interval
            - disk_mb_per_second: Read+write throughput, None if unavailable
            - interval_seconds: Sample length
        """
        try:
            import psutil
        except ImportError as e:
            raise ToolNotFoundError("psutil", collector_id=self.id) from e

        disk_before = psutil.disk_io_counters()
        cpu_percent = psutil.cpu_percent(interval=self.sample_interval)
        disk_after = psutil.disk_io_counters()
        memory = psutil.virtual_memory()

        disk_rate = None
        if disk_before is not None and disk_after is not None:
            moved = (
                (disk_after.read_bytes - disk_before.read_bytes)
                + (disk_after.write_bytes - disk_before.write_bytes)
            )
            disk_rate = moved / BYTES_PER_MB / self.sample_interval

        return {
            "memory_used_mb": memory.used / BYTES_PER_MB,
            "memory_percent": float(memory.percent),
            "cpu_percent": float(cpu_percent),
            "disk_mb_per_second": disk_rate,
            "interval_seconds": self.sample_interval,
        }

    async def _collect(self, ctx: CollectionContext) -> List[MetricRecord]:
        loop = asyncio.get_running_loop()
        snapshot = await loop.run_in_executor(None, self.sample)

        interval = {"interval_seconds": f"{snapshot['interval_seconds']:.2f}"}
        records = [
            ctx.record(
                MetricSource.SYSTEM,
                MetricType.MEMORY_USAGE,
                snapshot["memory_used_mb"],
                metadata={"memory_percent": f"{snapshot['memory_percent']:.1f}"}
            ),
            ctx.record(
                MetricSource.SYSTEM,
                MetricType.CUSTOM,
                snapshot["cpu_percent"],
                unit="%",
                custom_type_name="cpuUsage",
                metadata=interval
            ),
        ]
        if snapshot["disk_mb_per_second"] is not None:
            records.append(
                ctx.record(
                    MetricSource.SYSTEM,
                    MetricType.DISK_IO,
                    snapshot["disk_mb_per_second"],
                    metadata=interval
                )
            )
        else:
            self._log.debug("Disk counters unavailable on this host, skipping diskIO")

        return records
