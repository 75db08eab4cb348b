"""Metric models: raw samples, query selections and reduced summaries.

Two pipelines feed the response payload:
- cpu: CPUUtilization, Average statistic, Percent -> peak + mean
- net: NetworkIn, Maximum statistic, Bytes -> peak + sum of per-period maxima

Wire format of the success body (field order is fixed):
    {"cpu": {"perc", "time", "avg"}, "net": {"max", "time", "total"}}

Date/Time: All timestamps are ISO 8601 UTC strings produced by `whenever`.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Statistic(StrEnum):
    """CloudWatch statistic applied within each period."""

    AVERAGE = "Average"
    MAXIMUM = "Maximum"
    MINIMUM = "Minimum"
    SUM = "Sum"
    SAMPLE_COUNT = "SampleCount"


class MetricUnit(StrEnum):
    PERCENT = "Percent"
    BYTES = "Bytes"
    KILOBYTES = "Kilobytes"
    MEGABYTES = "Megabytes"
    COUNT = "Count"
    SECONDS = "Seconds"


# =============================================================================
# QUERY INPUT / OUTPUT
# =============================================================================


class Sample(BaseModel):
    """One datapoint returned by the monitoring backend."""

    model_config = ConfigDict(frozen=True)

    timestamp: str
    value: float


class SeriesSelection(BaseModel):
    """Everything needed to ask the backend for one statistic series."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    metric_name: str
    dimension_key: str
    dimension_value: str
    start_time: str
    end_time: str
    period_sec: int = Field(gt=0)
    statistic: Statistic
    unit: MetricUnit


# =============================================================================
# SUMMARIES
# =============================================================================


class CpuSummary(BaseModel):
    """CPU utilization over the window.

    average_percent is the arithmetic mean of all Average samples;
    peak_percent is the largest of them, first occurrence wins on ties.
    """

    model_config = ConfigDict(frozen=True)

    peak_percent: float = Field(serialization_alias="perc")
    peak_time: str = Field(serialization_alias="time")
    average_percent: float = Field(serialization_alias="avg")


class NetSummary(BaseModel):
    """Inbound network traffic over the window.

    total_bytes is the total of per-period peaks (sum of Maximum samples),
    not the true number of bytes transferred.
    """

    model_config = ConfigDict(frozen=True)

    peak_bytes: float = Field(serialization_alias="max")
    peak_time: str = Field(serialization_alias="time")
    total_bytes: float = Field(serialization_alias="total")


class ResponsePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    cpu: CpuSummary
    net: NetSummary


# =============================================================================
# INVOCATION ENVELOPE
# =============================================================================


class ErrorDetail(BaseModel):
    type: str
    stage: str
    message: str
    pipelines: list[str] = Field(default_factory=list)


class ErrorBody(BaseModel):
    """Body returned with any non-200 status."""

    error: ErrorDetail


class InvocationResponse(BaseModel):
    """Response envelope handed back to the Lambda runtime."""

    status_code: int = Field(serialization_alias="statusCode")
    body: str

    def to_lambda(self) -> dict:
        return self.model_dump(by_alias=True)
