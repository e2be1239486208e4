"""Deletion planning.

Turns a flat set of discovered descriptors into an ordered DeletionPlan.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from ..models.deletion_plan import DeletionPlan, DeletionTier
from ..models.resource_descriptor import ResourceDescriptor, ResourceKind
from .dependency import DependencyResolver

logger = logging.getLogger(__name__)

# Fixed precedence: every stage finishes (waits included) before the next starts.
DELETION_STAGES: List[Tuple[ResourceKind, ...]] = [
    (ResourceKind.EVENT_RULE,),
    (ResourceKind.LAMBDA_FUNCTION, ResourceKind.LAMBDA_LAYER),
    (ResourceKind.LOG_GROUP, ResourceKind.DASHBOARD, ResourceKind.METRIC_ALARM),
    (ResourceKind.EC2_INSTANCE,),
    (ResourceKind.DB_INSTANCE,),
    (ResourceKind.DB_SUBNET_GROUP,),
    (ResourceKind.S3_BUCKET,),
    (ResourceKind.SECURITY_GROUP,),
    (ResourceKind.INTERNET_GATEWAY,),
    (ResourceKind.SUBNET,),
    (ResourceKind.ROUTE_TABLE,),
    (ResourceKind.VPC,),
    (ResourceKind.IAM_ROLE,),
    (ResourceKind.KEY_PAIR,),
]

STAGE_OF: Dict[ResourceKind, int] = {kind: index for index, stage in enumerate(DELETION_STAGES) for kind in stage}


def merge_descriptors(descriptors: Iterable[ResourceDescriptor]) -> List[ResourceDescriptor]:
    """Collapse duplicates of the same resource, unioning their dependencies."""
    merged: Dict[str, ResourceDescriptor] = {}
    for descriptor in descriptors:
        existing = merged.get(descriptor.key)
        if existing is None:
            merged[descriptor.key] = descriptor
        else:
            merged[descriptor.key] = existing.with_dependencies(*descriptor.depends_on)
    return list(merged.values())


def build_deletion_plan(descriptors: Iterable[ResourceDescriptor]) -> DeletionPlan:
    """Build a tiered deletion plan.

    Stages follow DELETION_STAGES. Inside a stage, explicit depends_on edges
    are layered into sub-tiers. Edges to resources outside the plan are
    ignored. Edges that point to a later stage or form a cycle are logged and
    dropped, so planning never aborts a run.

    Args:
        descriptors: Discovered resources

    Returns:
        DeletionPlan with tiers numbered from 1
    """
    planned = merge_descriptors(descriptors)
    planned_keys = {descriptor.key for descriptor in planned}

    tiers: List[DeletionTier] = []
    for stage_index, stage_kinds in enumerate(DELETION_STAGES):
        members = {d.key: d for d in planned if d.kind in stage_kinds}
        if not members:
            continue

        resolver = DependencyResolver()
        for descriptor in members.values():
            for dependency in descriptor.depends_on:
                if dependency.key not in planned_keys:
                    continue
                dependency_stage = STAGE_OF.get(dependency.kind, len(DELETION_STAGES))
                if dependency_stage > stage_index:
                    logger.warning(
                        f"Ignoring dependency of {descriptor.key} on {dependency.key}: "
                        f"{dependency.kind.label} are deleted later"
                    )
                elif dependency_stage == stage_index:
                    resolver.add_dependency(parent=descriptor.key, child=dependency.key)

        if resolver.has_cycle():
            logger.warning(
                f"Circular dependency among {', '.join(sorted(resolver.graph))}; "
                f"deleting {len(members)} resources as a single tier"
            )
            stage_tiers = [sorted(members)]
        else:
            stage_tiers = [keys for _, keys in sorted(resolver.get_deletion_tiers(list(members)).items())]

        for keys in stage_tiers:
            tiers.append(
                DeletionTier(number=len(tiers) + 1, descriptors=frozenset(members[key] for key in keys))
            )

    plan = DeletionPlan(tiers=tiers)
    logger.debug(f"Planned {plan.resource_count} resources in {len(plan)} tiers")
    return plan
