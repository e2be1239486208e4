"""Lambda and EventBridge trigger collector."""

from __future__ import annotations

from typing import Any, Dict, List, Set, Tuple

from ..models.resource_descriptor import ResourceDescriptor, ResourceKind
from .base import BaseResourceCollector, match_pattern


def function_name_from_arn(arn: str) -> str:
    """Extract the function name from a Lambda function ARN (version/alias suffix dropped)."""
    if ":function:" not in arn:
        return ""
    return arn.split(":function:", 1)[1].split(":", 1)[0]


class LambdaCollector(BaseResourceCollector):
    """Collector for Lambda functions, layers and the EventBridge rules that invoke them."""

    @property
    def service_name(self) -> str:
        return "lambda"

    @property
    def supported_kinds(self) -> Tuple[ResourceKind, ...]:
        return (ResourceKind.EVENT_RULE, ResourceKind.LAMBDA_FUNCTION, ResourceKind.LAMBDA_LAYER)

    def collect(self, kind: ResourceKind, patterns: List[str]) -> Set[ResourceDescriptor]:
        if kind == ResourceKind.EVENT_RULE:
            return self._collect_event_rules(patterns)
        if kind == ResourceKind.LAMBDA_FUNCTION:
            return self._collect_functions(patterns)
        if kind == ResourceKind.LAMBDA_LAYER:
            return self._collect_layers(patterns)
        raise self._unsupported(kind)

    def _collect_functions(self, patterns: List[str]) -> Set[ResourceDescriptor]:
        """Collect functions by name. Each depends on the rules targeting it."""
        client = self._create_client()
        rule_targets = self._rule_targets()

        descriptors = set()
        paginator = client.get_paginator("list_functions")
        for page in paginator.paginate():
            for function in page.get("Functions", []):
                name = function["FunctionName"]
                label = match_pattern(name, patterns)
                if not label:
                    continue

                triggers = [
                    self._rule_descriptor(rule, label)
                    for rule, targets in rule_targets.values()
                    if any(function_name_from_arn(t.get("Arn", "")) == name for t in targets)
                ]
                descriptors.add(
                    ResourceDescriptor(
                        kind=ResourceKind.LAMBDA_FUNCTION,
                        identifier=name,
                        match_label=label,
                        depends_on=frozenset(triggers),
                        attributes={"arn": function.get("FunctionArn", "")},
                    )
                )

        self.logger.debug(f"Collected {len(descriptors)} Lambda functions in {self.region}")
        return descriptors

    def _collect_layers(self, patterns: List[str]) -> Set[ResourceDescriptor]:
        client = self._create_client()

        descriptors = set()
        paginator = client.get_paginator("list_layers")
        for page in paginator.paginate():
            for layer in page.get("Layers", []):
                name = layer["LayerName"]
                label = match_pattern(name, patterns)
                if label:
                    descriptors.add(
                        ResourceDescriptor(kind=ResourceKind.LAMBDA_LAYER, identifier=name, match_label=label)
                    )

        return descriptors

    def _collect_event_rules(self, patterns: List[str]) -> Set[ResourceDescriptor]:
        """Collect rules whose name matches or that target a matching function."""
        descriptors = set()
        for rule, targets in self._rule_targets().values():
            label = match_pattern(rule["Name"], patterns)
            if not label:
                for target in targets:
                    label = match_pattern(function_name_from_arn(target.get("Arn", "")), patterns)
                    if label:
                        break
            if label:
                descriptors.add(self._rule_descriptor(rule, label))

        return descriptors

    def _rule_targets(self) -> Dict[str, Tuple[Dict[str, Any], List[Dict[str, Any]]]]:
        """Map rule name to (rule, targets) for user-managed rules on the default bus."""
        events = self._create_client("events")

        result: Dict[str, Tuple[Dict[str, Any], List[Dict[str, Any]]]] = {}
        for page in events.get_paginator("list_rules").paginate():
            for rule in page.get("Rules", []):
                # Rules owned by other AWS services cannot be deleted without Force
                if rule.get("ManagedBy"):
                    continue

                targets: List[Dict[str, Any]] = []
                try:
                    for target_page in events.get_paginator("list_targets_by_rule").paginate(Rule=rule["Name"]):
                        targets.extend(target_page.get("Targets", []))
                except Exception as e:
                    self.logger.debug(f"Could not list targets for rule {rule['Name']}: {e}")

                result[rule["Name"]] = (rule, targets)

        return result

    @staticmethod
    def _rule_descriptor(rule: Dict[str, Any], label: str) -> ResourceDescriptor:
        return ResourceDescriptor(
            kind=ResourceKind.EVENT_RULE,
            identifier=rule["Name"],
            match_label=label,
            attributes={"event_bus_name": rule.get("EventBusName", "default")},
        )
