"""Pydantic models for the metrics function.

- Metrics: samples, selections, per-pipeline summaries, response payload
- Config: deploy-time settings and execution strategy

Key Principle: summaries are computed once per invocation and never stored.
"""

from .config import ExecutionStrategy, MetricsConfig
from .metrics import (
    CpuSummary,
    ErrorBody,
    ErrorDetail,
    InvocationResponse,
    MetricUnit,
    NetSummary,
    ResponsePayload,
    Sample,
    SeriesSelection,
    Statistic,
)

__all__ = [
    # Config
    "ExecutionStrategy",
    "MetricsConfig",
    # Metrics
    "CpuSummary",
    "ErrorBody",
    "ErrorDetail",
    "InvocationResponse",
    "MetricUnit",
    "NetSummary",
    "ResponsePayload",
    "Sample",
    "SeriesSelection",
    "Statistic",
]
