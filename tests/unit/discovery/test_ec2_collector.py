"""Unit tests for EC2Collector."""

from __future__ import annotations

from unittest.mock import MagicMock, Mock, patch

import boto3
import pytest

from awsreap.discovery.ec2_collector import EC2Collector
from awsreap.models.resource_descriptor import ResourceKind


def _name(value: str) -> list:
    return [{"Key": "Name", "Value": value}]


class TestEC2Collector:
    """Tests for EC2Collector."""

    @pytest.fixture
    def mock_client(self) -> MagicMock:
        client = MagicMock()
        instances_page = {
            "Reservations": [
                {
                    "Instances": [
                        {
                            "InstanceId": "i-task",
                            "Tags": _name("task-server"),
                            "SecurityGroups": [{"GroupId": "sg-web"}],
                        },
                        {"InstanceId": "i-other", "Tags": _name("grafana"), "SecurityGroups": [{"GroupId": "sg-x"}]},
                        {"InstanceId": "i-untagged"},
                    ]
                }
            ]
        }
        groups_page = {
            "SecurityGroups": [
                {"GroupId": "sg-default", "GroupName": "default", "VpcId": "vpc-task"},
                {"GroupId": "sg-web", "GroupName": "task-web", "VpcId": "vpc-other"},
                {"GroupId": "sg-inside", "GroupName": "launch-wizard-1", "VpcId": "vpc-task"},
                {"GroupId": "sg-x", "GroupName": "monitoring", "VpcId": "vpc-other"},
            ]
        }

        def get_paginator(operation: str) -> Mock:
            paginator = Mock()
            paginator.paginate.return_value = {
                "describe_instances": [instances_page],
                "describe_security_groups": [groups_page],
            }[operation]
            return paginator

        client.get_paginator.side_effect = get_paginator
        client.describe_vpcs.return_value = {
            "Vpcs": [
                {"VpcId": "vpc-task", "Tags": _name("Task-VPC")},
                {"VpcId": "vpc-default", "IsDefault": True, "Tags": _name("Task-default")},
                {"VpcId": "vpc-other", "Tags": _name("sandbox")},
            ]
        }
        client.describe_internet_gateways.side_effect = lambda Filters: {
            "InternetGateways": [{"InternetGatewayId": "igw-task"}] if Filters else [{"InternetGatewayId": "igw-task"}]
        }
        client.describe_subnets.side_effect = lambda Filters: {
            "Subnets": [{"SubnetId": "subnet-a"}]
            if Filters
            else [{"SubnetId": "subnet-a"}, {"SubnetId": "subnet-named", "Tags": _name("task-private")}]
        }
        client.describe_route_tables.return_value = {
            "RouteTables": [
                {"RouteTableId": "rtb-main", "Associations": [{"Main": True}]},
                {"RouteTableId": "rtb-public", "Associations": [{"Main": False, "SubnetId": "subnet-a"}]},
            ]
        }
        client.describe_security_groups.return_value = {
            "SecurityGroups": [
                {"GroupId": "sg-default", "GroupName": "default"},
                {"GroupId": "sg-inside", "GroupName": "launch-wizard-1"},
            ]
        }
        client.describe_key_pairs.return_value = {"KeyPairs": [{"KeyName": "task-key"}, {"KeyName": "personal"}]}
        return client

    @pytest.fixture
    def collector(self, mock_client: MagicMock) -> EC2Collector:
        collector = EC2Collector(session=Mock(spec=boto3.Session), region="eu-west-3")
        with patch.object(collector, "_create_client", return_value=mock_client):
            yield collector

    def test_instances_match_name_tag_only(self, collector: EC2Collector) -> None:
        found = collector.collect(ResourceKind.EC2_INSTANCE, ["task"])

        assert {d.identifier for d in found} == {"i-task"}
        assert found.pop().name == "task-server"

    def test_no_fallback_when_nothing_matches(self, collector: EC2Collector) -> None:
        assert collector.collect(ResourceKind.EC2_INSTANCE, ["nomatch"]) == set()

    def test_key_pairs(self, collector: EC2Collector) -> None:
        found = collector.collect(ResourceKind.KEY_PAIR, ["task"])

        assert {d.identifier for d in found} == {"task-key"}

    def test_security_groups(self, collector: EC2Collector) -> None:
        found = {d.identifier: d for d in collector.collect(ResourceKind.SECURITY_GROUP, ["task"])}

        # Matched by name, and by living in the matched VPC; never the default group
        assert set(found) == {"sg-web", "sg-inside"}
        assert {d.identifier for d in found["sg-web"].depends_on} == {"i-task"}
        assert found["sg-inside"].match_label == "task"

    def test_vpcs_skip_default_and_depend_on_children(self, collector: EC2Collector) -> None:
        found = collector.collect(ResourceKind.VPC, ["Task"])

        assert {d.identifier for d in found} == {"vpc-task"}
        vpc = found.pop()
        assert vpc.name == "Task-VPC"
        assert {d.identifier for d in vpc.depends_on} == {"igw-task", "subnet-a", "rtb-public", "sg-inside"}

    def test_route_tables_exclude_main(self, collector: EC2Collector) -> None:
        found = collector.collect(ResourceKind.ROUTE_TABLE, ["Task"])

        assert {d.identifier for d in found} == {"rtb-public"}

    def test_subnets_include_named_children(self, collector: EC2Collector) -> None:
        found = collector.collect(ResourceKind.SUBNET, ["task"])

        assert {d.identifier for d in found} == {"subnet-a", "subnet-named"}

    def test_vpcs_described_once(self, collector: EC2Collector, mock_client: MagicMock) -> None:
        collector.collect(ResourceKind.SUBNET, ["task"])
        collector.collect(ResourceKind.VPC, ["task"])

        mock_client.describe_vpcs.assert_called_once()
