"""Deploy-time configuration for the metrics function.

The resource group and metric set are fixed per deployment; nothing here
can be changed by the caller of an invocation. Values come from environment
variables prefixed with ASG_METRICS_ (e.g. ASG_METRICS_STRATEGY=sequential).

Execution strategies:
- SEQUENTIAL: cpu then net. One fetch in flight, roughly twice the latency.
- CONCURRENT: cpu and net overlap. Two fetches in flight, about half the
  billed duration.
"""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings


class ExecutionStrategy(StrEnum):
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class MetricsConfig(BaseSettings):
    """Main configuration for the metrics function."""

    # AWS Configuration
    aws_region: str = Field(default="eu-west-2", min_length=1, description="CloudWatch region")

    # Target resource group
    namespace: str = Field(default="AWS/EC2", min_length=1, description="CloudWatch namespace")
    dimension_key: str = Field(
        default="AutoScalingGroupName",
        min_length=1,
        description="Dimension the queries are scoped to",
    )
    group_name: str = Field(
        default="managers-ag", min_length=1, description="Auto Scaling group name"
    )

    # Query window
    window_days: int = Field(default=3, gt=0, description="Trailing window length in days")
    period_sec: int = Field(
        default=300, gt=0, description="Backend aggregation period in seconds"
    )

    # Execution
    strategy: ExecutionStrategy = Field(
        default=ExecutionStrategy.CONCURRENT,
        description="How the cpu and net pipelines are scheduled",
    )
    timeout_sec: float | None = Field(
        default=None,
        gt=0,
        description="Abandon unfinished pipelines after this many seconds",
    )

    log_level: str = Field(default="INFO", description="Root log level")

    model_config = {"env_prefix": "ASG_METRICS_"}
