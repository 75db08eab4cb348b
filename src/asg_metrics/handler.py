"""Lambda entry point for the Auto Scaling group metrics function.

Deployed as a Lambda function with handler `asg_metrics.handler.lambda_handler`.
Run locally for a one-shot invocation:

Usage:
    python -m asg_metrics.handler
    # or
    asg-metrics run

Environment variables:
    AWS_EXECUTION_ENV       - Set by the Lambda runtime; selects Lambda mode
    ASG_METRICS_AWS_REGION  - CloudWatch region (default: eu-west-2)
    ASG_METRICS_GROUP_NAME  - Auto Scaling group name (default: managers-ag)
    ASG_METRICS_STRATEGY    - sequential | concurrent (default: concurrent)
    ASG_METRICS_TIMEOUT_SEC - Optional deadline for both pipelines

Status codes:
    200 - success, body is {"cpu": {...}, "net": {...}}
    500 - response body could not be serialized
    502 - a CloudWatch query failed
    503 - CloudWatch returned no datapoints for a metric
    504 - the configured deadline expired
ConfigError is not turned into a response: it is raised to the runtime as an
invocation error before any query is made.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from asg_metrics.client import CloudWatchMetricClient, MetricClient
from asg_metrics.errors import (
    ConfigError,
    MetricsError,
    PipelineError,
    PipelineTimeoutError,
    SerializationError,
)
from asg_metrics.models import (
    ErrorBody,
    ErrorDetail,
    InvocationResponse,
    MetricsConfig,
    ResponsePayload,
)
from asg_metrics.orchestrator import run

logger = logging.getLogger("asg_metrics.handler")

LAMBDA_ENV_MARKER = "AWS_EXECUTION_ENV"
_DIAGNOSTIC_ENV = ("AWS_LAMBDA_FUNCTION_VERSION", "AWS_LAMBDA_FUNCTION_MEMORY_SIZE")


def load_config() -> MetricsConfig:
    """Read deploy-time settings from the environment."""
    try:
        return MetricsConfig()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def create_client(config: MetricsConfig) -> MetricClient:
    """Build a CloudWatch client for the configured region.

    Credentials are resolved eagerly so a missing role or profile fails here
    rather than on the first query.
    """
    try:
        session = boto3.Session(region_name=config.aws_region)
        if session.get_credentials() is None:
            raise ConfigError(f"Unable to resolve AWS credentials for region {config.aws_region}")
        cloudwatch = session.client("cloudwatch")
    except BotoCoreError as exc:
        raise ConfigError(f"Unable to load SDK config: {exc}") from exc
    return CloudWatchMetricClient(cloudwatch)


def serialize_payload(payload: ResponsePayload) -> str:
    try:
        return payload.model_dump_json(by_alias=True)
    except PydanticSerializationError as exc:
        raise SerializationError(f"Unable to serialize response: {exc}") from exc


def status_for(exc: MetricsError) -> int:
    """Map a core failure to the status code reported to the caller.

    Fetch and empty-series errors always reach here wrapped in a PipelineError.
    """
    if isinstance(exc, PipelineTimeoutError):
        return 504
    if isinstance(exc, PipelineError):
        return 503 if exc.only_empty_series else 502
    return 500


def error_response(exc: MetricsError) -> InvocationResponse:
    body = ErrorBody(
        error=ErrorDetail(
            type=type(exc).__name__,
            stage=exc.stage,
            message=str(exc),
            pipelines=exc.pipelines,
        )
    )
    return InvocationResponse(status_code=status_for(exc), body=body.model_dump_json())


def handle(
    config: MetricsConfig | None = None,
    client_factory: Callable[[MetricsConfig], MetricClient] | None = None,
) -> InvocationResponse:
    """Run one invocation end to end.

    Raises:
        ConfigError: settings, region or credentials could not be resolved.
    """
    config = config or load_config()
    client = (client_factory or create_client)(config)

    try:
        result = asyncio.run(run(client, config))
        body = serialize_payload(result.payload)
    except MetricsError as exc:
        logger.error("Invocation failed at %s stage: %s", exc.stage, exc)
        return error_response(exc)

    return InvocationResponse(status_code=200, body=body)


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Function handler registered with the Lambda runtime. The event is ignored."""
    _log_runtime_markers()
    return handle().to_lambda()


def _log_runtime_markers() -> None:
    logger.info(
        "[lambda] %s: %s %s",
        LAMBDA_ENV_MARKER,
        os.environ.get(LAMBDA_ENV_MARKER, ""),
        " ".join(os.environ.get(name, "") for name in _DIAGNOSTIC_ENV),
    )


def execution_mode() -> str:
    return "lambda" if os.environ.get(LAMBDA_ENV_MARKER) else "local"


def main() -> None:
    """Entry point for `python -m asg_metrics.handler`."""
    logging.basicConfig(
        level=os.environ.get("ASG_METRICS_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if execution_mode() == "lambda":
        # The runtime imports this module and drives lambda_handler itself
        _log_runtime_markers()
        return

    response = handle()
    logger.info("Local invocation finished: status=%d body=%s", response.status_code, response.body)


if __name__ == "__main__":
    main()
