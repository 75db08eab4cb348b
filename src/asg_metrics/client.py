"""CloudWatch statistics client.

Wraps `GetMetricStatistics` for a single statistic and returns the datapoints
as `Sample` models, in the order the API returned them. CloudWatch makes no
ordering promise, so callers must not rely on it.

boto3 low-level clients are thread-safe; one instance is shared read-only by
both pipelines when they run concurrently.

Date/Time: Uses `whenever` library (UTC-first, Rust-backed).
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Protocol

from botocore.exceptions import BotoCoreError, ClientError
from whenever import Instant

from asg_metrics.errors import FetchError
from asg_metrics.models import Sample, SeriesSelection

logger = logging.getLogger("asg_metrics.client")


class MetricClient(Protocol):
    """Anything that can answer a statistics query."""

    def query(self, selection: SeriesSelection) -> list[Sample]: ...


def _iso_to_datetime(iso_str: str) -> datetime:
    """Convert ISO 8601 string to Python datetime for botocore."""
    return Instant.parse_iso(iso_str).py_datetime()


def _datetime_to_iso(dt: datetime) -> str:
    """Convert an aware Python datetime (botocore uses dateutil tzutc) to ISO 8601."""
    return Instant.from_py_datetime(dt.astimezone(UTC)).format_iso()


class CloudWatchMetricClient:
    """Queries CloudWatch through a boto3 `cloudwatch` client."""

    def __init__(self, cloudwatch: Any) -> None:
        self._cloudwatch = cloudwatch

    def query(self, selection: SeriesSelection) -> list[Sample]:
        statistic = selection.statistic.value
        try:
            resp = self._cloudwatch.get_metric_statistics(
                Namespace=selection.namespace,
                MetricName=selection.metric_name,
                Dimensions=[
                    {"Name": selection.dimension_key, "Value": selection.dimension_value},
                ],
                StartTime=_iso_to_datetime(selection.start_time),
                EndTime=_iso_to_datetime(selection.end_time),
                Period=selection.period_sec,
                Statistics=[statistic],
                Unit=selection.unit.value,
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            raise FetchError(
                f"CloudWatch rejected {selection.metric_name} query ({code}): {exc}",
                metric_name=selection.metric_name,
            ) from exc
        except BotoCoreError as exc:
            raise FetchError(
                f"CloudWatch {selection.metric_name} query failed: {exc}",
                metric_name=selection.metric_name,
            ) from exc

        samples: list[Sample] = []
        for point in resp.get("Datapoints", []):
            value = point.get(statistic)
            if value is None:
                logger.debug("Datapoint without %s value skipped: %s", statistic, point)
                continue
            samples.append(Sample(timestamp=_datetime_to_iso(point["Timestamp"]), value=value))

        logger.debug(
            "Fetched %d datapoints for %s/%s (%s)",
            len(samples),
            selection.namespace,
            selection.metric_name,
            statistic,
        )
        return samples
