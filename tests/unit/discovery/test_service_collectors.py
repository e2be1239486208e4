"""Unit tests for the CloudWatch, RDS, S3 and IAM collectors."""

from __future__ import annotations

from typing import Dict, List
from unittest.mock import MagicMock, Mock, patch

import boto3
import pytest
from botocore.exceptions import ClientError

from awsreap.discovery.base import match_pattern, tags_to_dict
from awsreap.discovery.cloudwatch_collector import CloudWatchCollector
from awsreap.discovery.iam_collector import IAMCollector
from awsreap.discovery.rds_collector import RDSCollector
from awsreap.discovery.s3_collector import S3Collector
from awsreap.models.resource_descriptor import ResourceKind


def _paginated_client(pages_by_operation: Dict[str, List[dict]]) -> MagicMock:
    client = MagicMock()

    def get_paginator(operation: str) -> Mock:
        paginator = Mock()
        paginator.paginate.return_value = pages_by_operation.get(operation, [])
        return paginator

    client.get_paginator.side_effect = get_paginator
    return client


@pytest.fixture
def mock_session() -> Mock:
    return Mock(spec=boto3.Session)


class TestMatching:
    def test_case_sensitive_match_preferred(self) -> None:
        assert match_pattern("TaskManager-main", ["taskmanager", "TaskManager"]) == "TaskManager"

    def test_case_insensitive_fallback(self) -> None:
        assert match_pattern("Oppgave-VPC", ["oppgave"]) == "oppgave"

    def test_no_value(self) -> None:
        assert match_pattern(None, ["task"]) is None
        assert match_pattern("", ["task"]) is None

    def test_tags_to_dict(self) -> None:
        assert tags_to_dict([{"Key": "Name", "Value": "task"}]) == {"Name": "task"}
        assert tags_to_dict(None) == {}


class TestCloudWatchCollector:
    """Tests for CloudWatchCollector."""

    @pytest.fixture
    def collector(self, mock_session: Mock) -> CloudWatchCollector:
        return CloudWatchCollector(session=mock_session, region="eu-west-3")

    def test_log_groups(self, collector: CloudWatchCollector) -> None:
        client = _paginated_client(
            {
                "describe_log_groups": [
                    {"logGroups": [{"logGroupName": "/aws/lambda/task-reminder"}, {"logGroupName": "/aws/lambda/other"}]}
                ]
            }
        )

        with patch.object(collector, "_create_client", return_value=client) as mock_create_client:
            found = collector.collect(ResourceKind.LOG_GROUP, ["taskmanager", "/aws/lambda/task"])

        mock_create_client.assert_called_once_with("logs")
        assert {d.identifier for d in found} == {"/aws/lambda/task-reminder"}

    def test_dashboards_and_alarms(self, collector: CloudWatchCollector) -> None:
        client = _paginated_client(
            {
                "list_dashboards": [{"DashboardEntries": [{"DashboardName": "TaskManager-Overview"}]}],
                "describe_alarms": [{"MetricAlarms": [{"AlarmName": "taskmanager-errors"}, {"AlarmName": "billing"}]}],
            }
        )

        with patch.object(collector, "_create_client", return_value=client):
            dashboards = collector.collect(ResourceKind.DASHBOARD, ["TaskManager"])
            alarms = collector.collect(ResourceKind.METRIC_ALARM, ["taskmanager"])

        assert {d.identifier for d in dashboards} == {"TaskManager-Overview"}
        assert {d.identifier for d in alarms} == {"taskmanager-errors"}


class TestRDSCollector:
    """Tests for RDSCollector."""

    @pytest.fixture
    def client(self) -> MagicMock:
        return _paginated_client(
            {
                "describe_db_instances": [
                    {
                        "DBInstances": [
                            {
                                "DBInstanceIdentifier": "oppgave-db",
                                "DBInstanceStatus": "available",
                                "DeletionProtection": True,
                                "DBSubnetGroup": {"DBSubnetGroupName": "rds-private"},
                            },
                            {"DBInstanceIdentifier": "analytics", "DBSubnetGroup": {"DBSubnetGroupName": "default"}},
                        ]
                    }
                ],
                "describe_db_subnet_groups": [
                    {
                        "DBSubnetGroups": [
                            {"DBSubnetGroupName": "default"},
                            {"DBSubnetGroupName": "rds-private"},
                            {"DBSubnetGroupName": "task-db-subnets"},
                            {"DBSubnetGroupName": "unrelated"},
                        ]
                    }
                ],
            }
        )

    @pytest.fixture
    def collector(self, mock_session: Mock) -> RDSCollector:
        return RDSCollector(session=mock_session, region="eu-west-3")

    def test_db_instances(self, collector: RDSCollector, client: MagicMock) -> None:
        with patch.object(collector, "_create_client", return_value=client):
            found = collector.collect(ResourceKind.DB_INSTANCE, ["task", "oppgave"])

        assert {d.identifier for d in found} == {"oppgave-db"}
        db = found.pop()
        assert db.attributes == {"status": "available", "deletion_protection": True}

    def test_subnet_groups_by_name_or_usage(self, collector: RDSCollector, client: MagicMock) -> None:
        with patch.object(collector, "_create_client", return_value=client):
            found = {d.identifier: d for d in collector.collect(ResourceKind.DB_SUBNET_GROUP, ["task", "oppgave"])}

        assert set(found) == {"rds-private", "task-db-subnets"}
        assert {d.identifier for d in found["rds-private"].depends_on} == {"oppgave-db"}
        assert found["task-db-subnets"].depends_on == frozenset()


class TestS3Collector:
    """Tests for S3Collector."""

    @pytest.fixture
    def collector(self, mock_session: Mock) -> S3Collector:
        return S3Collector(session=mock_session, region="eu-west-3")

    def test_buckets_record_region(self, collector: S3Collector) -> None:
        client = MagicMock()
        client.list_buckets.return_value = {
            "Buckets": [{"Name": "task-uploads"}, {"Name": "oppgavestyring-frontend"}, {"Name": "photos"}]
        }

        def get_bucket_location(Bucket: str) -> dict:
            if Bucket == "task-uploads":
                return {"LocationConstraint": None}
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GetBucketLocation")

        client.get_bucket_location.side_effect = get_bucket_location

        with patch.object(collector, "_create_client", return_value=client):
            found = {d.identifier: d for d in collector.collect(ResourceKind.S3_BUCKET, ["oppgavestyring", "task-"])}

        assert set(found) == {"task-uploads", "oppgavestyring-frontend"}
        assert found["task-uploads"].attributes["region"] == "us-east-1"
        assert found["oppgavestyring-frontend"].attributes["region"] == "eu-west-3"


class TestIAMCollector:
    """Tests for IAMCollector."""

    def test_roles_skip_service_linked(self, mock_session: Mock) -> None:
        collector = IAMCollector(session=mock_session, region="eu-west-3")
        client = _paginated_client(
            {
                "list_roles": [
                    {
                        "Roles": [
                            {"RoleName": "task-lambda-role", "Path": "/", "Arn": "arn:aws:iam::1:role/task-lambda-role"},
                            {"RoleName": "AWSServiceRoleForTaskThing", "Path": "/aws-service-role/task.amazonaws.com/"},
                            {"RoleName": "admin", "Path": "/"},
                        ]
                    }
                ]
            }
        )

        with patch.object(collector, "_create_client", return_value=client):
            found = collector.collect(ResourceKind.IAM_ROLE, ["task"])

        assert {d.identifier for d in found} == {"task-lambda-role"}
        assert found.pop().attributes["arn"] == "arn:aws:iam::1:role/task-lambda-role"
