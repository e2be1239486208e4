"""CloudWatch observability collector (log groups, dashboards, alarms)."""

from __future__ import annotations

from typing import List, Set, Tuple

from ..models.resource_descriptor import ResourceDescriptor, ResourceKind
from .base import BaseResourceCollector, match_pattern


class CloudWatchCollector(BaseResourceCollector):
    """Collector for CloudWatch log groups, dashboards and metric alarms.

    Custom metrics cannot be deleted through the API (they expire on their
    own), so alarms built on them are the deletable part of a namespace.
    """

    @property
    def service_name(self) -> str:
        return "cloudwatch"

    @property
    def supported_kinds(self) -> Tuple[ResourceKind, ...]:
        return (ResourceKind.LOG_GROUP, ResourceKind.DASHBOARD, ResourceKind.METRIC_ALARM)

    def collect(self, kind: ResourceKind, patterns: List[str]) -> Set[ResourceDescriptor]:
        if kind == ResourceKind.LOG_GROUP:
            return self._collect(
                client=self._create_client("logs"),
                operation="describe_log_groups",
                result_key="logGroups",
                name_key="logGroupName",
                kind=kind,
                patterns=patterns,
            )
        if kind == ResourceKind.DASHBOARD:
            return self._collect(
                client=self._create_client(),
                operation="list_dashboards",
                result_key="DashboardEntries",
                name_key="DashboardName",
                kind=kind,
                patterns=patterns,
            )
        if kind == ResourceKind.METRIC_ALARM:
            return self._collect(
                client=self._create_client(),
                operation="describe_alarms",
                result_key="MetricAlarms",
                name_key="AlarmName",
                kind=kind,
                patterns=patterns,
            )
        raise self._unsupported(kind)

    def _collect(
        self,
        client,
        operation: str,
        result_key: str,
        name_key: str,
        kind: ResourceKind,
        patterns: List[str],
    ) -> Set[ResourceDescriptor]:
        descriptors = set()
        for page in client.get_paginator(operation).paginate():
            for item in page.get(result_key, []):
                name = item[name_key]
                label = match_pattern(name, patterns)
                if label:
                    descriptors.add(ResourceDescriptor(kind=kind, identifier=name, match_label=label))

        self.logger.debug(f"Collected {len(descriptors)} {kind.label} in {self.region}")
        return descriptors
