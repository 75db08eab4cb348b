"""Pytest configuration and fixtures for the metrics function tests."""

import threading
import time

import pytest
from whenever import Instant, TimeDelta

from asg_metrics.models import ExecutionStrategy, MetricsConfig, Sample, SeriesSelection

NOW = Instant.from_utc(2026, 1, 15, 12, 0, 0)


def _ts(minutes: int) -> str:
    return (NOW - TimeDelta(hours=1) + TimeDelta(minutes=minutes)).format_iso()


class FakeMetricClient:
    """In-memory MetricClient keyed by metric name.

    Each entry is either a list of samples or an exception to raise.
    `delay` holds optional per-metric sleeps; `barrier` forces callers to
    meet before returning, which only succeeds when queries overlap.
    """

    def __init__(
        self,
        series: dict[str, list[Sample] | Exception],
        *,
        delay: dict[str, float] | None = None,
        barrier: threading.Barrier | None = None,
    ) -> None:
        self.series = series
        self.delay = delay or {}
        self.barrier = barrier
        self.calls: list[SeriesSelection] = []

    def query(self, selection: SeriesSelection) -> list[Sample]:
        self.calls.append(selection)
        if self.barrier is not None:
            self.barrier.wait()
        time.sleep(self.delay.get(selection.metric_name, 0))
        result = self.series[selection.metric_name]
        if isinstance(result, Exception):
            raise result
        return list(result)

    @property
    def queried(self) -> list[str]:
        return [s.metric_name for s in self.calls]


@pytest.fixture(scope="session")
def ts():
    """ISO timestamp `minutes` after the start of the test window."""
    return _ts


@pytest.fixture(scope="session")
def make_client():
    """Factory for in-memory metric clients."""
    return FakeMetricClient


@pytest.fixture
def now() -> Instant:
    return NOW


@pytest.fixture
def cpu_samples() -> list[Sample]:
    return [
        Sample(timestamp=_ts(0), value=10.0),
        Sample(timestamp=_ts(5), value=50.0),
        Sample(timestamp=_ts(10), value=30.0),
    ]


@pytest.fixture
def net_samples() -> list[Sample]:
    return [
        Sample(timestamp=_ts(0), value=1024.0),
        Sample(timestamp=_ts(5), value=2048.0),
    ]


@pytest.fixture
def fake_client(cpu_samples, net_samples) -> FakeMetricClient:
    return FakeMetricClient({"CPUUtilization": cpu_samples, "NetworkIn": net_samples})


@pytest.fixture
def config() -> MetricsConfig:
    """Default settings, independent of the caller's environment."""
    return MetricsConfig(
        aws_region="eu-west-2",
        group_name="managers-ag",
        window_days=3,
        period_sec=300,
        strategy=ExecutionStrategy.CONCURRENT,
        timeout_sec=None,
    )
