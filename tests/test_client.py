"""Unit tests for the CloudWatch client, using botocore's Stubber."""

from datetime import UTC, datetime

import boto3
import pytest
from botocore.stub import Stubber

from asg_metrics.client import CloudWatchMetricClient
from asg_metrics.errors import FetchError
from asg_metrics.pipelines import CPU_PIPELINE, NET_PIPELINE, build_selection


@pytest.fixture
def cloudwatch():
    client = boto3.client(
        "cloudwatch",
        region_name="eu-west-2",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def _expected_params(selection):
    return {
        "Namespace": "AWS/EC2",
        "MetricName": selection.metric_name,
        "Dimensions": [{"Name": "AutoScalingGroupName", "Value": "managers-ag"}],
        "StartTime": datetime(2026, 1, 12, 12, 0, tzinfo=UTC),
        "EndTime": datetime(2026, 1, 15, 12, 0, tzinfo=UTC),
        "Period": 300,
        "Statistics": [selection.statistic.value],
        "Unit": selection.unit.value,
    }


class TestCloudWatchMetricClient:
    def test_cpu_query(self, cloudwatch, config, now):
        client, stubber = cloudwatch
        selection = build_selection(CPU_PIPELINE, config, now)
        stubber.add_response(
            "get_metric_statistics",
            {
                "Label": "CPUUtilization",
                "Datapoints": [
                    {
                        "Timestamp": datetime(2026, 1, 14, 9, 0, tzinfo=UTC),
                        "Average": 42.5,
                        "Unit": "Percent",
                    },
                    {
                        "Timestamp": datetime(2026, 1, 13, 9, 0, tzinfo=UTC),
                        "Average": 12.0,
                        "Unit": "Percent",
                    },
                ],
            },
            _expected_params(selection),
        )

        samples = CloudWatchMetricClient(client).query(selection)

        # Order is preserved as returned, not sorted.
        assert [s.value for s in samples] == [42.5, 12.0]
        assert samples[0].timestamp == "2026-01-14T09:00:00Z"

    def test_net_query_reads_maximum(self, cloudwatch, config, now):
        client, stubber = cloudwatch
        selection = build_selection(NET_PIPELINE, config, now)
        stubber.add_response(
            "get_metric_statistics",
            {
                "Label": "NetworkIn",
                "Datapoints": [
                    {
                        "Timestamp": datetime(2026, 1, 14, 9, 0, tzinfo=UTC),
                        "Maximum": 2048.0,
                        "Unit": "Bytes",
                    },
                ],
            },
            _expected_params(selection),
        )

        samples = CloudWatchMetricClient(client).query(selection)
        assert [s.value for s in samples] == [2048.0]

    def test_no_datapoints(self, cloudwatch, config, now):
        client, stubber = cloudwatch
        selection = build_selection(CPU_PIPELINE, config, now)
        stubber.add_response(
            "get_metric_statistics",
            {"Label": "CPUUtilization", "Datapoints": []},
            _expected_params(selection),
        )
        assert CloudWatchMetricClient(client).query(selection) == []

    def test_datapoint_missing_statistic_skipped(self, cloudwatch, config, now):
        client, stubber = cloudwatch
        selection = build_selection(CPU_PIPELINE, config, now)
        stubber.add_response(
            "get_metric_statistics",
            {
                "Datapoints": [
                    {"Timestamp": datetime(2026, 1, 14, 9, 0, tzinfo=UTC), "Maximum": 99.0},
                    {"Timestamp": datetime(2026, 1, 14, 9, 5, tzinfo=UTC), "Average": 10.0},
                ]
            },
        )
        samples = CloudWatchMetricClient(client).query(selection)
        assert [s.value for s in samples] == [10.0]

    @pytest.mark.parametrize("code", ["Throttling", "AccessDenied", "InvalidParameterValue"])
    def test_client_error_becomes_fetch_error(self, cloudwatch, config, now, code):
        client, stubber = cloudwatch
        selection = build_selection(CPU_PIPELINE, config, now)
        stubber.add_client_error("get_metric_statistics", service_error_code=code)

        with pytest.raises(FetchError) as exc_info:
            CloudWatchMetricClient(client).query(selection)
        assert code in str(exc_info.value)
        assert exc_info.value.metric_name == "CPUUtilization"
        assert exc_info.value.stage == "fetch"
