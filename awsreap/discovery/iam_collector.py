"""IAM role collector."""

from __future__ import annotations

from typing import List, Set, Tuple

from ..models.resource_descriptor import ResourceDescriptor, ResourceKind
from .base import BaseResourceCollector, match_pattern


class IAMCollector(BaseResourceCollector):
    """Collector for IAM roles. Service-linked roles are never collected."""

    @property
    def service_name(self) -> str:
        return "iam"

    @property
    def supported_kinds(self) -> Tuple[ResourceKind, ...]:
        return (ResourceKind.IAM_ROLE,)

    def collect(self, kind: ResourceKind, patterns: List[str]) -> Set[ResourceDescriptor]:
        if kind != ResourceKind.IAM_ROLE:
            raise self._unsupported(kind)

        client = self._create_client()
        descriptors = set()
        for page in client.get_paginator("list_roles").paginate():
            for role in page.get("Roles", []):
                if role.get("Path", "/").startswith("/aws-service-role/"):
                    continue

                label = match_pattern(role["RoleName"], patterns)
                if label:
                    descriptors.add(
                        ResourceDescriptor(
                            kind=ResourceKind.IAM_ROLE,
                            identifier=role["RoleName"],
                            match_label=label,
                            attributes={"arn": role.get("Arn", "")},
                        )
                    )

        return descriptors
