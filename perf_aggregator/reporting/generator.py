"""
Report generation.

Reads a project's metrics for a window back from storage and, when a
baseline commit is configured and has stored metrics, attaches a
baseline comparison.
"""

from typing import Optional

from loguru import logger

from perf_aggregator.core.config import Configuration
from perf_aggregator.core.errors import StorageError
from perf_aggregator.core.models import TimeRange
from perf_aggregator.reporting.comparison import DEFAULT_THRESHOLD_PERCENT, compare_to_baseline
from perf_aggregator.reporting.models import BaselineComparison, PerformanceReport
from perf_aggregator.storage.base import MetricsStorage


class ReportGenerator:
    """Builds PerformanceReports from stored metrics."""

    def __init__(
        self,
        configuration: Configuration,
        storage: MetricsStorage,
        threshold: float = DEFAULT_THRESHOLD_PERCENT,
        log=None
    ):
        self.configuration = configuration
        self.storage = storage
        self.threshold = threshold
        self._log = (log or logger).bind(component="ReportGenerator")

    async def generate_report(self, time_range: Optional[TimeRange] = None) -> PerformanceReport:
        """
        Generate a report for the configured project.

        Args:
            time_range: Window to report on; defaults to the last
                        ``default_time_range_days`` days

        Returns:
            PerformanceReport, with a baseline comparison when one applies

        Raises:
            StorageError: If the window's metrics cannot be read
        """
        log = self._log.bind(context="ReportGenerator.generate_report")
        window = time_range or TimeRange.last_days(self.configuration.default_time_range_days)
        project = self.configuration.project_name

        metrics = await self.storage.retrieve_metrics(project, window)
        log.info(
            f"Generating report for {project}: {len(metrics)} metrics "
            f"between {window.start.isoformat()} and {window.end.isoformat()}"
        )

        comparison = None
        if self.configuration.baseline_commit:
            comparison = await self._baseline_comparison(metrics, self.configuration.baseline_commit)

        return PerformanceReport(
            project_name=project,
            metrics=metrics,
            baseline_comparison=comparison,
        )

    async def _baseline_comparison(self, metrics, baseline_commit: str) -> Optional[BaselineComparison]:
        log = self._log.bind(context="ReportGenerator._baseline_comparison")
        try:
            baseline = await self.storage.retrieve_metrics_for_commit(
                baseline_commit, self.configuration.project_name
            )
        except StorageError as e:
            log.warning(f"Could not read baseline {baseline_commit}, report has no comparison: {e}")
            return None

        if not baseline:
            log.info(f"No stored metrics for baseline {baseline_commit}, comparison omitted")
            return None

        return compare_to_baseline(
            metrics, baseline, baseline_commit, threshold=self.threshold, log=self._log
        )
