"""Fetch-then-reduce pipelines, one per metric.

A pipeline owns its selection, its samples and its summary; nothing is
shared between pipelines except the read-only client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from whenever import Instant, TimeDelta

from asg_metrics.errors import FetchError
from asg_metrics.models import (
    CpuSummary,
    MetricUnit,
    NetSummary,
    SeriesSelection,
    Statistic,
)
from asg_metrics.reducer import reduce_cpu, reduce_net

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from asg_metrics.client import MetricClient
    from asg_metrics.models import MetricsConfig, Sample

logger = logging.getLogger("asg_metrics.pipelines")

_DISPLAY_TIME_FORMAT = "%m/%d/%Y %H:%M:%S"


def _display_time(iso_str: str) -> str:
    return Instant.parse_iso(iso_str).py_datetime().strftime(_DISPLAY_TIME_FORMAT)


def _describe_cpu(summary: CpuSummary, window_days: int) -> str:
    return (
        f"CPU MAX: {summary.peak_percent:.0f}% {_display_time(summary.peak_time)}, "
        f"{window_days} days AVG: {summary.average_percent:.0f}%"
    )


def _describe_net(summary: NetSummary, window_days: int) -> str:
    return (
        f"NET Peak: {summary.peak_bytes / 1024:.0f} KB {_display_time(summary.peak_time)}, "
        f"{window_days} days Total: {summary.total_bytes / 1024 / 1024:.0f} MB"
    )


@dataclass(frozen=True)
class MetricPipeline:
    """Static description of one metric pipeline."""

    name: str
    metric_name: str
    statistic: Statistic
    unit: MetricUnit
    reducer: Callable[[Sequence[Sample]], Any]
    describe: Callable[[Any, int], str]


CPU_PIPELINE = MetricPipeline(
    name="cpu",
    metric_name="CPUUtilization",
    statistic=Statistic.AVERAGE,
    unit=MetricUnit.PERCENT,
    reducer=reduce_cpu,
    describe=_describe_cpu,
)

NET_PIPELINE = MetricPipeline(
    name="net",
    metric_name="NetworkIn",
    statistic=Statistic.MAXIMUM,
    unit=MetricUnit.BYTES,
    reducer=reduce_net,
    describe=_describe_net,
)


def build_selection(
    pipeline: MetricPipeline,
    config: MetricsConfig,
    now: Instant,
) -> SeriesSelection:
    """Trailing window ending at `now`, scoped to the configured group."""
    start = now - TimeDelta(hours=24 * config.window_days)
    return SeriesSelection(
        namespace=config.namespace,
        metric_name=pipeline.metric_name,
        dimension_key=config.dimension_key,
        dimension_value=config.group_name,
        start_time=start.format_iso(),
        end_time=now.format_iso(),
        period_sec=config.period_sec,
        statistic=pipeline.statistic,
        unit=pipeline.unit,
    )


def run_pipeline(
    pipeline: MetricPipeline,
    client: MetricClient,
    selection: SeriesSelection,
    *,
    group_name: str,
    window_days: int,
):
    """Query the backend once and reduce the result. Blocking."""
    try:
        samples = client.query(selection)
    except FetchError as exc:
        exc.pipeline = pipeline.name
        raise
    except Exception as exc:
        raise FetchError(
            f"{pipeline.metric_name} query failed: {exc}",
            metric_name=pipeline.metric_name,
            pipeline=pipeline.name,
        ) from exc

    summary = pipeline.reducer(samples)
    logger.info("%s group %s", group_name, pipeline.describe(summary, window_days))
    return summary


def fetch_and_reduce_cpu(
    client: MetricClient, config: MetricsConfig, now: Instant
) -> CpuSummary:
    selection = build_selection(CPU_PIPELINE, config, now)
    return run_pipeline(
        CPU_PIPELINE,
        client,
        selection,
        group_name=config.group_name,
        window_days=config.window_days,
    )


def fetch_and_reduce_net(
    client: MetricClient, config: MetricsConfig, now: Instant
) -> NetSummary:
    selection = build_selection(NET_PIPELINE, config, now)
    return run_pipeline(
        NET_PIPELINE,
        client,
        selection,
        group_name=config.group_name,
        window_days=config.window_days,
    )
