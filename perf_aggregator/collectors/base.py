"""
Collector contract and shared collector machinery.

This module defines what every metric source implements:
- MetricCollector: Protocol checked at registration time
- BaseCollector: Convenience base class enforcing the timeout and the
  error taxonomy around a subclass's ``_collect`` coroutine
- ProcessResult / run_process: Subprocess helper with a private timeout
  that kills the child process on expiry

A collector never lets an arbitrary exception cross its boundary: every
failure surfaces as one of the CollectorError kinds.
"""

import asyncio
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, FrozenSet, List, Optional, Protocol, Sequence, runtime_checkable

from loguru import logger

from perf_aggregator.core.errors import (
    CollectorError,
    CollectorTimeoutError,
    ExecutionFailedError,
    ToolNotFoundError,
)
from perf_aggregator.core.models import MetricRecord, MetricSource, MetricType, Provenance

PROCESS_GRACE_SECONDS = 1.0


@runtime_checkable
class MetricCollector(Protocol):
    """
    Protocol for metric collection plugins.

    Implementations measure one external source (a build, a test run, a
    profiler, the host) and turn the result into MetricRecords.
    """

    id: str
    name: str

    def get_supported_metric_types(self) -> FrozenSet[MetricType]:
        """Metric types this collector can produce; fixed for its lifetime."""
        ...

    def is_available(self) -> bool:
        """
        Cheap environment check (e.g. "is the underlying tool installed").

        Must not start long-running work or have side effects.
        """
        ...

    async def collect_metrics(
        self,
        project_path: str,
        project_name: str,
        provenance: Optional[Provenance] = None
    ) -> List[MetricRecord]:
        """
        Collect metrics for a project.

        Args:
            project_path: Root directory of the project to measure
            project_name: Name every produced record is attributed to
            provenance: Commit/branch to stamp on produced records

        Returns:
            Records produced by this collector

        Raises:
            CollectorError: One of ExecutionFailedError, DataParsingFailedError,
                ToolNotFoundError, UnsupportedProjectError or CollectorTimeoutError
        """
        ...


@dataclass(frozen=True)
class CollectionContext:
    """Everything a collector needs to attribute the records it creates."""
    project_path: Path
    project_name: str
    provenance: Provenance = Provenance()

    def record(
        self,
        source: MetricSource,
        metric_type: MetricType,
        value: float,
        **kwargs: Any
    ) -> MetricRecord:
        """Create a record stamped with this context's project and provenance."""
        kwargs.setdefault("commit_hash", self.provenance.commit_hash)
        kwargs.setdefault("branch_name", self.provenance.branch_name)
        return MetricRecord(
            project_name=self.project_name,
            source=source,
            type=metric_type,
            value=value,
            **kwargs
        )


@dataclass
class ProcessResult:
    """Outcome of a finished subprocess."""
    returncode: int
    stdout: str
    stderr: str
    duration: float


class BaseCollector:
    """
    Base class for collectors (optional convenience).

    Subclasses set ``id``, ``name`` and ``supported_types`` and implement
    ``_collect``. The public ``collect_metrics`` runs ``_collect`` under the
    collector's own timeout and maps stray exceptions to
    ExecutionFailedError, so callers only ever see CollectorErrors.
    """

    id: str = ""
    name: str = ""
    supported_types: FrozenSet[MetricType] = frozenset()
    required_tool: Optional[str] = None

    def __init__(self, timeout: float = 300.0, log=None):
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self.timeout = timeout
        self._log = (log or logger).bind(component=self.__class__.__name__, collector=self.id)

    @property
    def description(self) -> str:
        return f"Collects performance metrics from {self.name}"

    def get_supported_metric_types(self) -> FrozenSet[MetricType]:
        return frozenset(self.supported_types)

    def is_available(self) -> bool:
        """Default check: the required tool (if any) is on PATH."""
        if self.required_tool is None:
            return True
        return shutil.which(self.required_tool) is not None

    async def collect_metrics(
        self,
        project_path: str,
        project_name: str,
        provenance: Optional[Provenance] = None
    ) -> List[MetricRecord]:
        log = self._log.bind(context=f"{self.__class__.__name__}.collect_metrics")
        log.info(f"Collecting metrics for {project_name} at {project_path}")

        ctx = CollectionContext(
            project_path=Path(project_path),
            project_name=project_name,
            provenance=provenance or Provenance()
        )
        try:
            # Outer deadline covers work that is not a subprocess (parsing, sampling);
            # the grace period lets run_process report its own operation first
            records = await asyncio.wait_for(
                self._collect(ctx),
                timeout=self.timeout + PROCESS_GRACE_SECONDS
            )
        except CollectorError as e:
            e.collector_id = e.collector_id or self.id
            raise
        except asyncio.TimeoutError as e:
            raise CollectorTimeoutError(f"{self.name} collection", collector_id=self.id) from e
        except Exception as e:
            log.exception(f"Unexpected failure in {self.name}")
            raise ExecutionFailedError(f"{type(e).__name__}: {e}", collector_id=self.id) from e

        log.info(f"{self.name} produced {len(records)} records")
        return records

    async def _collect(self, ctx: CollectionContext) -> List[MetricRecord]:
        """Must be implemented by subclasses."""
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement _collect()"
        )

    async def run_process(
        self,
        args: Sequence[str],
        cwd: Path,
        operation: str,
        timeout: Optional[float] = None
    ) -> ProcessResult:
        """
        Run an external process with a private timeout.

        On expiry the child is killed and reaped before CollectorTimeoutError
        is raised; sibling collectors are unaffected.

        Raises:
            ToolNotFoundError: If the executable does not exist
            ExecutionFailedError: If the process cannot be started
            CollectorTimeoutError: If the process outlives the timeout
        """
        log = self._log.bind(context=f"{self.__class__.__name__}.run_process")
        limit = timeout if timeout is not None else self.timeout
        log.info(f"{operation}: {' '.join(args)} (timeout {limit:.0f}s)")

        start = time.perf_counter()
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(args[0], collector_id=self.id) from e
        except OSError as e:
            raise ExecutionFailedError(f"Could not start {args[0]}: {e}", collector_id=self.id) from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=limit)
        except (asyncio.TimeoutError, asyncio.CancelledError) as e:
            if process.returncode is None:
                process.kill()
                await process.wait()
            if isinstance(e, asyncio.CancelledError):
                raise
            log.warning(f"{operation} timed out after {limit:.1f}s, process killed")
            raise CollectorTimeoutError(operation, collector_id=self.id) from e

        duration = time.perf_counter() - start
        return ProcessResult(
            returncode=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration=duration
        )
