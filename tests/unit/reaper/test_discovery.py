"""Tests for ResourceDiscoverer."""

from __future__ import annotations

from unittest.mock import Mock

import boto3
import pytest
from botocore.exceptions import ClientError

from awsreap.discovery import COLLECTOR_CLASSES
from awsreap.models.resource_descriptor import ResourceDescriptor, ResourceKind
from awsreap.reaper.discovery import ResourceDiscoverer


@pytest.fixture
def discoverer() -> ResourceDiscoverer:
    return ResourceDiscoverer(Mock(spec=boto3.Session), "eu-west-3")


class TestResourceDiscoverer:
    """Test suite for ResourceDiscoverer."""

    def test_every_kind_has_a_collector(self, discoverer: ResourceDiscoverer) -> None:
        assert set(discoverer.collectors) == set(ResourceKind)
        assert len(COLLECTOR_CLASSES) == 6

    def test_discover_delegates_to_collector(self, discoverer: ResourceDiscoverer) -> None:
        bucket = ResourceDescriptor(ResourceKind.S3_BUCKET, "task-uploads")
        collector = Mock()
        collector.collect.return_value = {bucket}
        discoverer.collectors[ResourceKind.S3_BUCKET] = collector

        found = discoverer.discover(ResourceKind.S3_BUCKET, ["task-"])

        assert found == {bucket}
        collector.collect.assert_called_once_with(ResourceKind.S3_BUCKET, ["task-"])

    def test_failed_query_is_nothing_found(self, discoverer: ResourceDiscoverer) -> None:
        collector = Mock()
        collector.collect.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "not authorized"}}, "ListBuckets"
        )
        discoverer.collectors[ResourceKind.S3_BUCKET] = collector

        assert discoverer.discover(ResourceKind.S3_BUCKET, ["task-"]) == set()

    def test_empty_patterns_skip_query(self, discoverer: ResourceDiscoverer) -> None:
        collector = Mock()
        discoverer.collectors[ResourceKind.IAM_ROLE] = collector

        assert discoverer.discover(ResourceKind.IAM_ROLE, []) == set()
        collector.collect.assert_not_called()

    def test_discover_all_in_kind_order(self, discoverer: ResourceDiscoverer) -> None:
        collector = Mock()
        collector.collect.return_value = set()
        for kind in ResourceKind:
            discoverer.collectors[kind] = collector

        found = discoverer.discover_all({ResourceKind.VPC: ["Task"], ResourceKind.EVENT_RULE: ["task"]})

        assert list(found) == [ResourceKind.EVENT_RULE, ResourceKind.VPC]
        assert all(value == set() for value in found.values())
