"""Error taxonomy for the metrics function.

Every error carries the stage it failed in so the entry point can build a
diagnosable error body. Nothing here is retried; callers re-invoke.
"""

from __future__ import annotations


class MetricsError(Exception):
    """Base class for all metrics function failures."""

    stage = "unknown"

    @property
    def pipelines(self) -> list[str]:
        return []


class ConfigError(MetricsError):
    """Region, credentials or settings could not be resolved."""

    stage = "config"


class FetchError(MetricsError):
    """A CloudWatch query failed (network, auth, throttling, bad request)."""

    stage = "fetch"

    def __init__(self, message: str, *, metric_name: str, pipeline: str | None = None) -> None:
        super().__init__(message)
        self.metric_name = metric_name
        self.pipeline = pipeline

    @property
    def pipelines(self) -> list[str]:
        return [self.pipeline] if self.pipeline else []


class EmptySeriesError(MetricsError):
    """A reduction was attempted over zero samples."""

    stage = "reduce"

    def __init__(self, metric: str) -> None:
        super().__init__(f"No datapoints returned for {metric}, insufficient data")
        self.metric = metric


class PipelineError(MetricsError):
    """One or more pipelines failed.

    failures maps pipeline name to the error it raised, in launch order.
    """

    stage = "pipeline"

    def __init__(self, failures: dict[str, BaseException]) -> None:
        detail = "; ".join(f"{name}: {exc}" for name, exc in failures.items())
        super().__init__(f"Pipeline(s) failed: {detail}")
        self.failures = failures

    @property
    def pipelines(self) -> list[str]:
        return list(self.failures)

    @property
    def only_empty_series(self) -> bool:
        return all(isinstance(exc, EmptySeriesError) for exc in self.failures.values())


class PipelineTimeoutError(MetricsError):
    """The deadline expired before every pipeline joined."""

    stage = "timeout"

    def __init__(self, timeout_sec: float, pending: list[str]) -> None:
        super().__init__(
            f"Deadline of {timeout_sec:.2f}s exceeded, pending: {', '.join(pending) or 'none'}"
        )
        self.timeout_sec = timeout_sec
        self.pending = pending

    @property
    def pipelines(self) -> list[str]:
        return list(self.pending)


class SerializationError(MetricsError):
    """The response body could not be built."""

    stage = "serialize"
