"""
Build duration collector.

Times one full build of the project. The build command is either given
explicitly in the collector options or detected from the project layout:
- Makefile -> ``make``
- pyproject.toml / setup.py -> ``python -m build --wheel`` into a temp dir
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from perf_aggregator.collectors.base import BaseCollector, CollectionContext
from perf_aggregator.core.errors import ExecutionFailedError, UnsupportedProjectError
from perf_aggregator.core.models import MetricRecord, MetricSource, MetricType


class BuildTimeCollector(BaseCollector):
    """Measures wall-clock build duration."""

    id = "buildTime"
    name = "Build Time Collector"
    supported_types = frozenset({MetricType.BUILD_DURATION})

    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        timeout: float = 600.0,
        clean_command: Optional[Sequence[str]] = None,
        log=None
    ):
        """
        Args:
            command: Explicit build command; detected from the project when None
            timeout: Seconds allowed for the clean plus the timed build
            clean_command: Optional command run before the timed build so
                           every measurement starts from the same state
            log: Optional loguru logger
        """
        super().__init__(timeout=timeout, log=log)
        self.command = list(command) if command else None
        self.clean_command = list(clean_command) if clean_command else None

    @property
    def description(self) -> str:
        return "Collects build time metrics from the project's build system"

    def is_available(self) -> bool:
        if self.command:
            return shutil.which(self.command[0]) is not None
        return True

    def detect_build_command(self, project_path: Path, out_dir: Path) -> Tuple[str, List[str]]:
        """
        Work out how to build the project.

        Returns:
            Tuple of (build system name, command)

        Raises:
            UnsupportedProjectError: If no build definition is found
        """
        if self.command:
            return "custom", list(self.command)
        if (project_path / "Makefile").exists():
            return "make", ["make"]
        if (project_path / "pyproject.toml").exists() or (project_path / "setup.py").exists():
            return "python-build", [sys.executable, "-m", "build", "--wheel", "--outdir", str(out_dir)]
        raise UnsupportedProjectError("No build definition found (Makefile, pyproject.toml, setup.py)")

    async def _collect(self, ctx: CollectionContext) -> List[MetricRecord]:
        with tempfile.TemporaryDirectory(prefix="perf-build-") as out_dir:
            build_system, command = self.detect_build_command(ctx.project_path, Path(out_dir))

            if self.clean_command:
                # Clean gets half the timeout
                clean = await self.run_process(
                    self.clean_command, ctx.project_path, "Project clean", timeout=self.timeout / 2
                )
                if clean.returncode != 0:
                    raise ExecutionFailedError(
                        f"Clean failed with exit code {clean.returncode}: {clean.stderr.strip()}"
                    )

            result = await self.run_process(command, ctx.project_path, "Project build")

        if result.returncode != 0:
            self._log.error(f"Build failed with exit code {result.returncode}")
            raise ExecutionFailedError(
                f"Build failed with exit code {result.returncode}: {result.stderr.strip()[-2000:]}"
            )

        self._log.info(f"Project built successfully in {result.duration:.2f} seconds")
        return [
            ctx.record(
                MetricSource.BUILD_TIME,
                MetricType.BUILD_DURATION,
                result.duration,
                unit="seconds",
                metadata={
                    "build_system": build_system,
                    "command": " ".join(command),
                }
            )
        ]
