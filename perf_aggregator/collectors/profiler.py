"""
cProfile-based function timing collector.

Runs the project's entry point under ``python -m cProfile`` and reports:
- One ``startupTime`` record for the whole run
- The top-N functions by cumulative time as ``cpuTime`` records, located
  by file, line and function name
"""

import asyncio
import pstats
import sys
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from perf_aggregator.collectors.base import BaseCollector, CollectionContext
from perf_aggregator.core.errors import (
    DataParsingFailedError,
    ExecutionFailedError,
    UnsupportedProjectError,
)
from perf_aggregator.core.models import MetricRecord, MetricSource, MetricType

ENTRY_POINT_CANDIDATES = ("__main__.py", "main.py", "app.py")

# (file, line, function, primitive calls, total calls, own time, cumulative time)
FunctionTiming = Tuple[str, int, str, int, int, float, float]


def load_top_functions(profile_file: Path, top_n: int) -> List[FunctionTiming]:
    """
    Read a cProfile output file and return the most expensive functions.

    Built-in functions (reported under the pseudo file ``~``) are skipped.

    Raises:
        DataParsingFailedError: If the profile cannot be read
    """
    try:
        stats = pstats.Stats(str(profile_file))
    except (OSError, EOFError, TypeError, ValueError) as e:
        raise DataParsingFailedError(f"Unreadable profile {profile_file.name}: {e}") from e

    timings = []
    for (filename, line, function), (cc, nc, tt, ct, _callers) in stats.stats.items():
        if filename == "~":
            continue
        timings.append((filename, line, function, cc, nc, tt, ct))

    timings.sort(key=lambda t: t[6], reverse=True)
    return timings[:top_n]


class ProfilerCollector(BaseCollector):
    """Profiles one run of the project's entry point."""

    id = "profiler"
    name = "Profiler Collector"
    supported_types = frozenset({MetricType.CPU_TIME, MetricType.STARTUP_TIME})

    def __init__(
        self,
        entry_point: Optional[str] = None,
        entry_args: Optional[Sequence[str]] = None,
        top_n: int = 20,
        timeout: float = 300.0,
        python: Optional[str] = None,
        log=None
    ):
        """
        Args:
            entry_point: Script to profile, relative to the project root;
                         detected from common names when None
            entry_args: Arguments passed to the entry point
            top_n: Number of functions to report
            timeout: Seconds allowed for the profiled run
            python: Interpreter to run under (defaults to the current one)
            log: Optional loguru logger
        """
        super().__init__(timeout=timeout, log=log)
        if top_n <= 0:
            raise ValueError(f"top_n must be positive, got {top_n}")
        self.entry_point = entry_point
        self.entry_args = list(entry_args or [])
        self.top_n = top_n
        self.python = python or sys.executable

    @property
    def description(self) -> str:
        return "Collects function-level CPU timings with cProfile"

    def find_entry_point(self, project_path: Path) -> Path:
        if self.entry_point:
            candidate = project_path / self.entry_point
            if not candidate.is_file():
                raise UnsupportedProjectError(f"Entry point not found: {self.entry_point}")
            return candidate

        for name in ENTRY_POINT_CANDIDATES:
            candidate = project_path / name
            if candidate.is_file():
                return candidate
        raise UnsupportedProjectError(
            f"No entry point found (tried {', '.join(ENTRY_POINT_CANDIDATES)})"
        )

    async def _collect(self, ctx: CollectionContext) -> List[MetricRecord]:
        entry = self.find_entry_point(ctx.project_path)

        with tempfile.TemporaryDirectory(prefix="perf-profile-") as tmp_dir:
            profile_file = Path(tmp_dir) / "run.prof"
            args = [self.python, "-m", "cProfile", "-o", str(profile_file), str(entry)] + self.entry_args
            result = await self.run_process(args, ctx.project_path, "Profiled run")

            if result.returncode != 0:
                raise ExecutionFailedError(
                    f"Profiled run exited with code {result.returncode}: {result.stderr.strip()[-2000:]}"
                )
            if not profile_file.exists():
                raise DataParsingFailedError("cProfile produced no output file")

            loop = asyncio.get_running_loop()
            timings = await loop.run_in_executor(None, load_top_functions, profile_file, self.top_n)

        entry_name = str(entry.relative_to(ctx.project_path))
        records = [
            ctx.record(
                MetricSource.PROFILER,
                MetricType.STARTUP_TIME,
                result.duration,
                file_path=entry_name,
                metadata={"entry_point": entry_name}
            )
        ]
        for filename, line, function, cc, nc, tt, ct in timings:
            records.append(
                ctx.record(
                    MetricSource.PROFILER,
                    MetricType.CPU_TIME,
                    ct,
                    file_path=filename,
                    function_name=function,
                    line_number=line,
                    metadata={
                        "calls": str(nc),
                        "primitive_calls": str(cc),
                        "own_time": f"{tt:.6f}",
                        "entry_point": entry_name,
                    }
                )
            )

        self._log.info(f"Profiled {entry_name}: {len(timings)} functions in {result.duration:.2f}s")
        return records
