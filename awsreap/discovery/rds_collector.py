"""RDS collector: database instances and DB subnet groups."""

from __future__ import annotations

from typing import Any, Dict, List, Set, Tuple

from ..models.resource_descriptor import ResourceDescriptor, ResourceKind
from .base import BaseResourceCollector, match_pattern


class RDSCollector(BaseResourceCollector):
    """Collector for RDS database instances and their subnet groups."""

    @property
    def service_name(self) -> str:
        return "rds"

    @property
    def supported_kinds(self) -> Tuple[ResourceKind, ...]:
        return (ResourceKind.DB_INSTANCE, ResourceKind.DB_SUBNET_GROUP)

    def collect(self, kind: ResourceKind, patterns: List[str]) -> Set[ResourceDescriptor]:
        client = self._create_client()

        if kind == ResourceKind.DB_INSTANCE:
            return {
                self._instance_descriptor(instance, label)
                for instance, label in self._matched_instances(client, patterns)
            }
        if kind == ResourceKind.DB_SUBNET_GROUP:
            return self._collect_subnet_groups(client, patterns)
        raise self._unsupported(kind)

    def _db_instances(self, client: Any) -> List[Dict[str, Any]]:
        instances = []
        for page in client.get_paginator("describe_db_instances").paginate():
            instances.extend(page.get("DBInstances", []))
        return instances

    def _matched_instances(self, client: Any, patterns: List[str]) -> List[Tuple[Dict[str, Any], str]]:
        matched = []
        for instance in self._db_instances(client):
            label = match_pattern(instance["DBInstanceIdentifier"], patterns)
            if label:
                matched.append((instance, label))
        return matched

    @staticmethod
    def _instance_descriptor(instance: Dict[str, Any], label: str) -> ResourceDescriptor:
        return ResourceDescriptor(
            kind=ResourceKind.DB_INSTANCE,
            identifier=instance["DBInstanceIdentifier"],
            match_label=label,
            attributes={
                "status": instance.get("DBInstanceStatus"),
                "deletion_protection": bool(instance.get("DeletionProtection")),
            },
        )

    def _collect_subnet_groups(self, client: Any, patterns: List[str]) -> Set[ResourceDescriptor]:
        """Collect subnet groups named after the project or used by a matched database.

        The "default" group is never collected. Each group depends on the
        database instances placed in it.
        """
        attached: Dict[str, List[ResourceDescriptor]] = {}
        instance_labels: Dict[str, str] = {}
        for instance, label in self._matched_instances(client, patterns):
            group_name = instance.get("DBSubnetGroup", {}).get("DBSubnetGroupName")
            if group_name:
                attached.setdefault(group_name, []).append(self._instance_descriptor(instance, label))
                instance_labels.setdefault(group_name, label)

        descriptors = set()
        for page in client.get_paginator("describe_db_subnet_groups").paginate():
            for group in page.get("DBSubnetGroups", []):
                name = group["DBSubnetGroupName"]
                if name == "default":
                    continue

                label = match_pattern(name, patterns) or instance_labels.get(name)
                if label:
                    descriptors.add(
                        ResourceDescriptor(
                            kind=ResourceKind.DB_SUBNET_GROUP,
                            identifier=name,
                            match_label=label,
                            depends_on=frozenset(attached.get(name, [])),
                        )
                    )

        return descriptors
