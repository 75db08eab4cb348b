"""Series reduction: turn a window of samples into a summary.

Pure functions, no I/O. Peaks are chosen by scanning in input order with a
strict comparison, so the first sample holding the maximum value wins.
CloudWatch returns datapoints unordered, which makes the reported peak time
nondeterministic when several periods share the maximum.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from asg_metrics.errors import EmptySeriesError
from asg_metrics.models import CpuSummary, NetSummary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from asg_metrics.models import Sample


def find_peak(samples: Sequence[Sample], metric: str) -> Sample:
    """Return the first sample holding the maximum value of `metric`."""
    if not samples:
        raise EmptySeriesError(metric)
    peak = samples[0]
    for sample in samples[1:]:
        if sample.value > peak.value:
            peak = sample
    return peak


def reduce_cpu(samples: Sequence[Sample]) -> CpuSummary:
    """Peak and mean of CPU utilization Average samples."""
    peak = find_peak(samples, "CPUUtilization")
    total = sum(s.value for s in samples)
    return CpuSummary(
        peak_percent=peak.value,
        peak_time=peak.timestamp,
        average_percent=total / len(samples),
    )


def reduce_net(samples: Sequence[Sample]) -> NetSummary:
    """Peak and total of NetworkIn Maximum samples.

    The total is a sum of per-period maxima, an upper-bound style
    approximation rather than the bytes actually received.
    """
    peak = find_peak(samples, "NetworkIn")
    return NetSummary(
        peak_bytes=peak.value,
        peak_time=peak.timestamp,
        total_bytes=sum(s.value for s in samples),
    )
