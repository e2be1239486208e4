"""Tests for ResourceDescriptor and ResourceKind models."""

from __future__ import annotations

import pytest

from awsreap.models.resource_descriptor import ResourceDescriptor, ResourceKind


class TestResourceKind:
    """Test suite for ResourceKind enum."""

    def test_every_kind_has_label(self) -> None:
        for kind in ResourceKind:
            assert kind.label

    def test_async_kinds(self) -> None:
        """Only instances and databases delete asynchronously."""
        async_kinds = {kind for kind in ResourceKind if kind.is_async}

        assert async_kinds == {ResourceKind.EC2_INSTANCE, ResourceKind.DB_INSTANCE}

    @pytest.mark.parametrize("value", ["ec2:vpc", "VPC", "vpc"])
    def test_from_value(self, value: str) -> None:
        assert ResourceKind.from_value(value) == ResourceKind.VPC

    def test_from_value_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown resource kind"):
            ResourceKind.from_value("ec2:nat-gateway")


class TestResourceDescriptor:
    """Test suite for ResourceDescriptor model."""

    def test_identity_is_kind_and_identifier(self) -> None:
        """Descriptors reached through different paths collapse in a set."""
        by_name = ResourceDescriptor(ResourceKind.SECURITY_GROUP, "sg-1", match_label="task", name="task-sg")
        by_vpc = ResourceDescriptor(ResourceKind.SECURITY_GROUP, "sg-1", match_label="Task")

        assert by_name == by_vpc
        assert len({by_name, by_vpc}) == 1

    def test_same_identifier_different_kind(self) -> None:
        function = ResourceDescriptor(ResourceKind.LAMBDA_FUNCTION, "task-handler")
        rule = ResourceDescriptor(ResourceKind.EVENT_RULE, "task-handler")

        assert function != rule
        assert function.key != rule.key

    def test_key(self) -> None:
        descriptor = ResourceDescriptor(ResourceKind.S3_BUCKET, "task-uploads")

        assert descriptor.key == "s3:bucket/task-uploads"

    def test_display_name(self) -> None:
        named = ResourceDescriptor(ResourceKind.EC2_INSTANCE, "i-123", name="task-server")
        unnamed = ResourceDescriptor(ResourceKind.EC2_INSTANCE, "i-456")

        assert named.display_name == "i-123 (task-server)"
        assert unnamed.display_name == "i-456"

    def test_with_dependencies(self) -> None:
        instance = ResourceDescriptor(ResourceKind.EC2_INSTANCE, "i-1")
        group = ResourceDescriptor(ResourceKind.SECURITY_GROUP, "sg-1", name="task-sg")

        merged = group.with_dependencies(instance)

        assert merged.depends_on == frozenset({instance})
        assert merged.name == "task-sg"
        assert group.depends_on == frozenset()
