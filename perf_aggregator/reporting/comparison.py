"""
Baseline comparison.

Groups the current window's records and the baseline commit's records by
metric type and classifies each type present in both groups by the
percentage change of its mean value. Lower values are treated as better
for every type.
"""

from typing import Dict, List, Sequence

import numpy as np
from loguru import logger

from perf_aggregator.core.models import MetricRecord, MetricType
from perf_aggregator.reporting.models import BaselineComparison, MetricComparison

DEFAULT_THRESHOLD_PERCENT = 1.0


def group_by_type(records: Sequence[MetricRecord]) -> Dict[MetricType, List[MetricRecord]]:
    """Group records by type, keeping first-seen type order."""
    groups: Dict[MetricType, List[MetricRecord]] = {}
    for record in records:
        groups.setdefault(record.type, []).append(record)
    return groups


def percent_change(baseline_avg: float, current_avg: float) -> float:
    return (current_avg - baseline_avg) / baseline_avg * 100.0


def compare_to_baseline(
    current: Sequence[MetricRecord],
    baseline: Sequence[MetricRecord],
    baseline_id: str,
    threshold: float = DEFAULT_THRESHOLD_PERCENT,
    log=None
) -> BaselineComparison:
    """
    Classify every metric type present in both record sets.

    Args:
        current: Records of the current window
        baseline: Records of the baseline commit
        baseline_id: Identifier of the baseline (the commit hash)
        threshold: Changes with magnitude below this percentage are unchanged
        log: Optional loguru logger

    Returns:
        BaselineComparison; types missing from the baseline are skipped.
        A type whose baseline mean is zero is unchanged when the current
        mean is also zero and skipped otherwise (no finite percentage).
    """
    log = (log or logger).bind(context="compare_to_baseline")

    current_by_type = group_by_type(current)
    baseline_by_type = group_by_type(baseline)

    improvements: List[MetricComparison] = []
    regressions: List[MetricComparison] = []
    unchanged: List[MetricComparison] = []

    for metric_type, current_of_type in current_by_type.items():
        baseline_of_type = baseline_by_type.get(metric_type)
        if not baseline_of_type:
            continue

        current_avg = float(np.mean([r.value for r in current_of_type]))
        baseline_avg = float(np.mean([r.value for r in baseline_of_type]))

        if baseline_avg == 0.0:
            if current_avg != 0.0:
                log.warning(
                    f"Skipping {metric_type.value}: baseline mean is 0, "
                    f"percent change undefined (current mean {current_avg:.4f})"
                )
                continue
            change = 0.0
        else:
            change = percent_change(baseline_avg, current_avg)

        comparison = MetricComparison(
            metric_id=current_of_type[0].id,
            metric_type=metric_type,
            baseline_value=baseline_avg,
            current_value=current_avg,
            percent_change=change,
        )

        if abs(change) < threshold:
            unchanged.append(comparison)
        elif change < 0:
            improvements.append(comparison)
        else:
            regressions.append(comparison)

    log.debug(
        f"Compared against {baseline_id}: {len(improvements)} improvements, "
        f"{len(regressions)} regressions, {len(unchanged)} unchanged"
    )
    return BaselineComparison(
        baseline_id=baseline_id,
        improvements=improvements,
        regressions=regressions,
        unchanged=unchanged,
    )
