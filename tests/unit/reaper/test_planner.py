"""Tests for deletion planning."""

from __future__ import annotations

from awsreap.models.resource_descriptor import ResourceKind
from awsreap.reaper.planner import DELETION_STAGES, build_deletion_plan, merge_descriptors
from tests.fixtures.descriptors import create_network_stack, make_descriptor


class TestDeletionStages:
    def test_every_kind_has_exactly_one_stage(self) -> None:
        staged = [kind for stage in DELETION_STAGES for kind in stage]

        assert sorted(staged, key=lambda k: k.value) == sorted(ResourceKind, key=lambda k: k.value)
        assert len(staged) == len(set(staged))

    def test_precedence(self) -> None:
        staged = [kind for stage in DELETION_STAGES for kind in stage]

        assert staged.index(ResourceKind.EVENT_RULE) < staged.index(ResourceKind.LAMBDA_FUNCTION)
        assert staged.index(ResourceKind.EC2_INSTANCE) < staged.index(ResourceKind.SECURITY_GROUP)
        assert staged.index(ResourceKind.DB_INSTANCE) < staged.index(ResourceKind.DB_SUBNET_GROUP)
        assert staged.index(ResourceKind.SUBNET) < staged.index(ResourceKind.VPC)
        assert staged.index(ResourceKind.VPC) < staged.index(ResourceKind.IAM_ROLE)


class TestMergeDescriptors:
    def test_duplicates_union_dependencies(self) -> None:
        instance_a = make_descriptor(ResourceKind.EC2_INSTANCE, "i-a")
        instance_b = make_descriptor(ResourceKind.EC2_INSTANCE, "i-b")
        by_name = make_descriptor(ResourceKind.SECURITY_GROUP, "sg-1", instance_a)
        by_vpc = make_descriptor(ResourceKind.SECURITY_GROUP, "sg-1", instance_b)

        merged = merge_descriptors([by_name, by_vpc])

        assert len(merged) == 1
        assert merged[0].depends_on == frozenset({instance_a, instance_b})


class TestBuildDeletionPlan:
    """Test suite for build_deletion_plan."""

    def test_empty_input(self) -> None:
        plan = build_deletion_plan([])

        assert plan.is_empty

    def test_network_stack_ordering(self) -> None:
        stack = create_network_stack()

        plan = build_deletion_plan(stack.values())

        assert plan.resource_count == 6
        assert [tier.kinds for tier in plan] == [
            [ResourceKind.EC2_INSTANCE],
            [ResourceKind.SECURITY_GROUP],
            [ResourceKind.INTERNET_GATEWAY],
            [ResourceKind.SUBNET],
            [ResourceKind.ROUTE_TABLE],
            [ResourceKind.VPC],
        ]
        assert [tier.number for tier in plan] == [1, 2, 3, 4, 5, 6]

    def test_dependencies_always_in_earlier_tiers(self) -> None:
        stack = create_network_stack("1")
        rule = make_descriptor(ResourceKind.EVENT_RULE, "task-schedule")
        function = make_descriptor(ResourceKind.LAMBDA_FUNCTION, "task-handler", rule)
        db = make_descriptor(ResourceKind.DB_INSTANCE, "task-db")
        subnet_group = make_descriptor(ResourceKind.DB_SUBNET_GROUP, "task-subnets", db)

        plan = build_deletion_plan(list(stack.values()) + [rule, function, db, subnet_group])

        for descriptor in plan.descriptors:
            for dependency in descriptor.depends_on:
                assert plan.tier_of(dependency) < plan.tier_of(descriptor)

    def test_same_stage_dependencies_create_sub_tiers(self) -> None:
        referencing = make_descriptor(ResourceKind.SECURITY_GROUP, "sg-app")
        referenced = make_descriptor(ResourceKind.SECURITY_GROUP, "sg-db", referencing)

        plan = build_deletion_plan([referenced, referencing])

        assert len(plan) == 2
        assert plan.tier_of(referencing) == 1
        assert plan.tier_of(referenced) == 2

    def test_same_stage_cycle_collapses_to_single_tier(self) -> None:
        first = make_descriptor(ResourceKind.SECURITY_GROUP, "sg-a")
        second = make_descriptor(ResourceKind.SECURITY_GROUP, "sg-b", first)
        first_with_cycle = first.with_dependencies(second)

        plan = build_deletion_plan([first_with_cycle, second])

        assert len(plan) == 1
        assert plan.resource_count == 2

    def test_dependency_on_later_stage_is_dropped(self) -> None:
        vpc = make_descriptor(ResourceKind.VPC, "vpc-1")
        instance = make_descriptor(ResourceKind.EC2_INSTANCE, "i-1", vpc)

        plan = build_deletion_plan([instance, vpc])

        assert plan.tier_of(instance) < plan.tier_of(vpc)

    def test_unplanned_dependency_is_ignored(self) -> None:
        outside = make_descriptor(ResourceKind.EC2_INSTANCE, "i-outside")
        group = make_descriptor(ResourceKind.SECURITY_GROUP, "sg-1", outside)

        plan = build_deletion_plan([group])

        assert len(plan) == 1
        assert plan.descriptors == [group]
