"""Reduce request outcomes into latency and throughput statistics.

Latency statistics use the durations of successful outcomes only.
Percentiles follow linear interpolation between closest ranks (R-7):
``r = p/100 * (n - 1)``, interpolated between ``floor(r)`` and ``ceil(r)``.

Throughput is always the observed completion window: the number of outcomes
divided by the seconds between the earliest and latest ``completed_at``. It
is 0 when that window is not positive.
"""

import math
from collections.abc import Sequence

import structlog

from .models import MetricsSummary, RequestOutcome

logger = structlog.get_logger()


def percentile(sorted_sample: Sequence[float], pct: float) -> float:
    """R-7 percentile of an ascending *sorted_sample*; 0.0 when empty."""
    if not sorted_sample:
        return 0.0
    rank = (pct / 100.0) * (len(sorted_sample) - 1)
    lo = math.floor(rank)
    hi = math.ceil(rank)
    if lo == hi:
        return float(sorted_sample[lo])
    return sorted_sample[lo] + (sorted_sample[hi] - sorted_sample[lo]) * (rank - lo)


def window_throughput(outcomes: Sequence[RequestOutcome]) -> float:
    if not outcomes:
        return 0.0
    timestamps = [o.completed_at for o in outcomes]
    window_s = (max(timestamps) - min(timestamps)).total_seconds()
    if window_s <= 0:
        return 0.0
    return len(outcomes) / window_s


class MetricsAggregator:
    """Pure reducer from an outcome sequence to a :class:`MetricsSummary`."""

    def summarize(self, outcomes: Sequence[RequestOutcome]) -> MetricsSummary:
        total = len(outcomes)
        if total == 0:
            return MetricsSummary()

        durations = sorted(o.duration_ms for o in outcomes if o.success)
        successes = len(durations)
        failures = total - successes
        counts = {
            "total_requests": total,
            "successful_requests": successes,
            "failed_requests": failures,
            "success_rate": successes / total * 100.0,
            "error_count": failures,
        }

        # No usable timing: keep the counts, zero everything else
        if not durations or durations[-1] <= 0:
            logger.debug("metrics_no_timing", total=total, successful=successes)
            return MetricsSummary(**counts)

        return MetricsSummary(
            **counts,
            throughput=window_throughput(outcomes),
            avg_response_time=sum(durations) / successes,
            min_response_time=durations[0],
            max_response_time=durations[-1],
            p95_response_time=percentile(durations, 95),
            p99_response_time=percentile(durations, 99),
        )
