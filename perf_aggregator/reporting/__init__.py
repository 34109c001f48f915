"""
Reports and baseline comparison.

- PerformanceReport: metric set of one project over one window
- compare_to_baseline: per-type classification against a baseline commit
- ReportGenerator: reads storage and assembles reports
"""

from .comparison import DEFAULT_THRESHOLD_PERCENT, compare_to_baseline, group_by_type
from .generator import ReportGenerator
from .models import BaselineComparison, MetricComparison, PerformanceReport

__all__ = [
    "BaselineComparison",
    "MetricComparison",
    "PerformanceReport",
    "ReportGenerator",
    "compare_to_baseline",
    "group_by_type",
    "DEFAULT_THRESHOLD_PERCENT",
]
