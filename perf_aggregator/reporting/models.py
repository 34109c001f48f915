"""
Report data structures.

A PerformanceReport is the metric set of one project over one window,
optionally with a BaselineComparison that classifies each metric type
present in both the window and the baseline commit.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from perf_aggregator.core.models import MetricRecord, MetricType, utc_now


@dataclass(frozen=True)
class MetricComparison:
    """
    Comparison of one metric type between the baseline and the current window.

    Attributes:
        metric_id: Id of a representative current record of this type
        metric_type: Type being compared
        baseline_value: Mean value over the baseline commit's records
        current_value: Mean value over the current window's records
        percent_change: (current - baseline) / baseline * 100
    """
    metric_id: str
    metric_type: MetricType
    baseline_value: float
    current_value: float
    percent_change: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric_id": self.metric_id,
            "metric_type": self.metric_type.value,
            "baseline_value": self.baseline_value,
            "current_value": self.current_value,
            "percent_change": self.percent_change,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricComparison":
        return cls(
            metric_id=data["metric_id"],
            metric_type=MetricType(data["metric_type"]),
            baseline_value=data["baseline_value"],
            current_value=data["current_value"],
            percent_change=data["percent_change"],
        )


@dataclass(frozen=True)
class BaselineComparison:
    """Per-type comparisons grouped by classification."""
    baseline_id: str
    improvements: List[MetricComparison] = field(default_factory=list)
    regressions: List[MetricComparison] = field(default_factory=list)
    unchanged: List[MetricComparison] = field(default_factory=list)

    @property
    def has_regressions(self) -> bool:
        return bool(self.regressions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseline_id": self.baseline_id,
            "improvements": [c.to_dict() for c in self.improvements],
            "regressions": [c.to_dict() for c in self.regressions],
            "unchanged": [c.to_dict() for c in self.unchanged],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaselineComparison":
        return cls(
            baseline_id=data["baseline_id"],
            improvements=[MetricComparison.from_dict(c) for c in data.get("improvements", [])],
            regressions=[MetricComparison.from_dict(c) for c in data.get("regressions", [])],
            unchanged=[MetricComparison.from_dict(c) for c in data.get("unchanged", [])],
        )


@dataclass(frozen=True)
class PerformanceReport:
    """
    Metrics of one project over one window.

    Attributes:
        project_name: Project the report covers
        metrics: Every record in the window
        generated_at: When the report was produced
        baseline_comparison: Present only when a baseline commit is configured
                             and has stored metrics
    """
    project_name: str
    metrics: List[MetricRecord]
    generated_at: datetime = field(default_factory=utc_now)
    baseline_comparison: Optional[BaselineComparison] = None

    def summary(self) -> Dict[str, Any]:
        """Counts per metric type and per classification."""
        by_type: Dict[str, int] = {}
        for record in self.metrics:
            by_type[record.type.value] = by_type.get(record.type.value, 0) + 1

        result: Dict[str, Any] = {
            "project_name": self.project_name,
            "metric_count": len(self.metrics),
            "metrics_by_type": by_type,
        }
        if self.baseline_comparison is not None:
            result["improvements"] = len(self.baseline_comparison.improvements)
            result["regressions"] = len(self.baseline_comparison.regressions)
            result["unchanged"] = len(self.baseline_comparison.unchanged)
            result["has_regressions"] = self.baseline_comparison.has_regressions
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "project_name": self.project_name,
            "metrics": [r.to_dict() for r in self.metrics],
            "generated_at": self.generated_at.isoformat(),
            "baseline_comparison": (
                self.baseline_comparison.to_dict() if self.baseline_comparison else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PerformanceReport":
        comparison = data.get("baseline_comparison")
        return cls(
            project_name=data["project_name"],
            metrics=[MetricRecord.from_dict(r) for r in data.get("metrics", [])],
            generated_at=datetime.fromisoformat(data["generated_at"]),
            baseline_comparison=BaselineComparison.from_dict(comparison) if comparison else None,
        )

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def to_dataframe(self) -> Any:
        """
        Export the report's metrics to a pandas DataFrame.

        Returns:
            pandas.DataFrame with one row per record and columns:
            - id, source, type, value, unit, timestamp
            - file_path, function_name, line_number, commit_hash, branch_name
            - meta_* (one column per metadata key)
        """
        try:
            import pandas as pd
        except ImportError:
            raise ImportError("pandas is required for DataFrame export. Install with: pip install pandas")

        if not self.metrics:
            return pd.DataFrame()

        rows = []
        for record in self.metrics:
            row = {
                "id": record.id,
                "source": record.display_source,
                "type": record.display_type,
                "value": record.value,
                "unit": record.unit,
                "timestamp": record.timestamp,
                "file_path": record.file_path,
                "function_name": record.function_name,
                "line_number": record.line_number,
                "commit_hash": record.commit_hash,
                "branch_name": record.branch_name,
            }
            for key, value in record.metadata.items():
                row[f"meta_{key}"] = value
            rows.append(row)

        return pd.DataFrame(rows)
