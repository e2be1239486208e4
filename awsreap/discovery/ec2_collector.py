"""EC2 collector: instances, key pairs, security groups and VPC topology."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set, Tuple

from ..models.resource_descriptor import ResourceDescriptor, ResourceKind
from .base import BaseResourceCollector, match_pattern, tags_to_dict

LIVE_INSTANCE_STATES = ["pending", "running", "stopping", "stopped"]


class EC2Collector(BaseResourceCollector):
    """Collector for EC2 compute and networking resources.

    Instances and VPCs are matched strictly on their Name tag. Nothing is
    collected when nothing matches; there is no fallback to every instance in
    the region. Network children (gateways, subnets, route tables, security
    groups) are collected when their VPC matches or their own name matches.
    """

    def __init__(self, session: Any, region: str) -> None:
        super().__init__(session, region)
        self._vpcs: Optional[List[Dict[str, Any]]] = None

    @property
    def service_name(self) -> str:
        return "ec2"

    @property
    def supported_kinds(self) -> Tuple[ResourceKind, ...]:
        return (
            ResourceKind.EC2_INSTANCE,
            ResourceKind.SECURITY_GROUP,
            ResourceKind.INTERNET_GATEWAY,
            ResourceKind.SUBNET,
            ResourceKind.ROUTE_TABLE,
            ResourceKind.VPC,
            ResourceKind.KEY_PAIR,
        )

    def collect(self, kind: ResourceKind, patterns: List[str]) -> Set[ResourceDescriptor]:
        client = self._create_client()

        if kind == ResourceKind.EC2_INSTANCE:
            return self._collect_instances(client, patterns)
        if kind == ResourceKind.KEY_PAIR:
            return self._collect_key_pairs(client, patterns)
        if kind == ResourceKind.SECURITY_GROUP:
            return self._collect_security_groups(client, patterns)
        if kind in (ResourceKind.INTERNET_GATEWAY, ResourceKind.SUBNET, ResourceKind.ROUTE_TABLE):
            return self._collect_network_children(client, kind, patterns)
        if kind == ResourceKind.VPC:
            return self._collect_vpcs(client, patterns)
        raise self._unsupported(kind)

    # Instances and key pairs

    def _collect_instances(self, client: Any, patterns: List[str]) -> Set[ResourceDescriptor]:
        descriptors = set()
        for instance in self._live_instances(client):
            name = tags_to_dict(instance.get("Tags")).get("Name")
            label = match_pattern(name, patterns)
            if label:
                descriptors.add(self._instance_descriptor(instance, label))

        self.logger.debug(f"Collected {len(descriptors)} EC2 instances in {self.region}")
        return descriptors

    def _collect_key_pairs(self, client: Any, patterns: List[str]) -> Set[ResourceDescriptor]:
        response = client.describe_key_pairs()
        descriptors = set()
        for key_pair in response.get("KeyPairs", []):
            label = match_pattern(key_pair["KeyName"], patterns)
            if label:
                descriptors.add(
                    ResourceDescriptor(kind=ResourceKind.KEY_PAIR, identifier=key_pair["KeyName"], match_label=label)
                )
        return descriptors

    def _live_instances(self, client: Any) -> List[Dict[str, Any]]:
        instances = []
        paginator = client.get_paginator("describe_instances")
        for page in paginator.paginate(Filters=[{"Name": "instance-state-name", "Values": LIVE_INSTANCE_STATES}]):
            for reservation in page.get("Reservations", []):
                instances.extend(reservation.get("Instances", []))
        return instances

    @staticmethod
    def _instance_descriptor(instance: Dict[str, Any], label: str) -> ResourceDescriptor:
        return ResourceDescriptor(
            kind=ResourceKind.EC2_INSTANCE,
            identifier=instance["InstanceId"],
            match_label=label,
            name=tags_to_dict(instance.get("Tags")).get("Name"),
        )

    # Security groups

    def _collect_security_groups(self, client: Any, patterns: List[str]) -> Set[ResourceDescriptor]:
        """Collect non-default groups matched by name or living in a matched VPC.

        Each group depends on the live instances still attached to it.
        """
        vpc_labels = {vpc["VpcId"]: label for vpc, label in self._matched_vpcs(client, patterns)}

        users: Dict[str, List[ResourceDescriptor]] = {}
        for instance in self._live_instances(client):
            for group in instance.get("SecurityGroups", []):
                users.setdefault(group["GroupId"], []).append(self._instance_descriptor(instance, ""))

        descriptors = set()
        paginator = client.get_paginator("describe_security_groups")
        for page in paginator.paginate():
            for group in page.get("SecurityGroups", []):
                if group.get("GroupName") == "default":
                    continue

                name_tag = tags_to_dict(group.get("Tags")).get("Name")
                label = (
                    match_pattern(group.get("GroupName"), patterns)
                    or match_pattern(name_tag, patterns)
                    or vpc_labels.get(group.get("VpcId", ""))
                )
                if not label:
                    continue

                descriptors.add(
                    ResourceDescriptor(
                        kind=ResourceKind.SECURITY_GROUP,
                        identifier=group["GroupId"],
                        match_label=label,
                        depends_on=frozenset(users.get(group["GroupId"], [])),
                        name=group.get("GroupName"),
                        attributes={"vpc_id": group.get("VpcId")},
                    )
                )

        return descriptors

    # VPC topology

    def _collect_vpcs(self, client: Any, patterns: List[str]) -> Set[ResourceDescriptor]:
        """Collect matched VPCs. Each depends on every child that blocks its deletion."""
        descriptors = set()
        for vpc, label in self._matched_vpcs(client, patterns):
            vpc_id = vpc["VpcId"]
            children = (
                self._gateways(client, vpc_id, label)
                | self._subnets(client, vpc_id, label)
                | self._route_tables(client, vpc_id, label)
                | self._vpc_security_groups(client, vpc_id, label)
            )
            descriptors.add(
                ResourceDescriptor(
                    kind=ResourceKind.VPC,
                    identifier=vpc_id,
                    match_label=label,
                    depends_on=frozenset(children),
                    name=tags_to_dict(vpc.get("Tags")).get("Name"),
                )
            )
        return descriptors

    def _collect_network_children(
        self, client: Any, kind: ResourceKind, patterns: List[str]
    ) -> Set[ResourceDescriptor]:
        fetch = {
            ResourceKind.INTERNET_GATEWAY: self._gateways,
            ResourceKind.SUBNET: self._subnets,
            ResourceKind.ROUTE_TABLE: self._route_tables,
        }[kind]

        descriptors: Set[ResourceDescriptor] = set()
        for vpc, label in self._matched_vpcs(client, patterns):
            descriptors |= fetch(client, vpc["VpcId"], label)

        # Children named after the project, even inside an unmatched VPC
        descriptors |= fetch(client, None, None, patterns)
        return descriptors

    def _matched_vpcs(self, client: Any, patterns: List[str]) -> List[Tuple[Dict[str, Any], str]]:
        """VPCs whose Name tag matches, paired with the matching pattern. Default VPCs are skipped."""
        if self._vpcs is None:
            response = client.describe_vpcs()
            self._vpcs = [vpc for vpc in response.get("Vpcs", []) if not vpc.get("IsDefault")]

        matched = []
        for vpc in self._vpcs:
            label = match_pattern(tags_to_dict(vpc.get("Tags")).get("Name"), patterns)
            if label:
                matched.append((vpc, label))
        return matched

    def _gateways(
        self, client: Any, vpc_id: Optional[str], label: Optional[str], patterns: Optional[List[str]] = None
    ) -> Set[ResourceDescriptor]:
        filters = [{"Name": "attachment.vpc-id", "Values": [vpc_id]}] if vpc_id else []
        response = client.describe_internet_gateways(Filters=filters)
        return self._network_descriptors(
            response.get("InternetGateways", []), "InternetGatewayId", ResourceKind.INTERNET_GATEWAY, label, patterns
        )

    def _subnets(
        self, client: Any, vpc_id: Optional[str], label: Optional[str], patterns: Optional[List[str]] = None
    ) -> Set[ResourceDescriptor]:
        filters = [{"Name": "vpc-id", "Values": [vpc_id]}] if vpc_id else []
        response = client.describe_subnets(Filters=filters)
        return self._network_descriptors(response.get("Subnets", []), "SubnetId", ResourceKind.SUBNET, label, patterns)

    def _route_tables(
        self, client: Any, vpc_id: Optional[str], label: Optional[str], patterns: Optional[List[str]] = None
    ) -> Set[ResourceDescriptor]:
        filters = [{"Name": "vpc-id", "Values": [vpc_id]}] if vpc_id else []
        response = client.describe_route_tables(Filters=filters)
        # The main route table goes away with its VPC and cannot be deleted on its own
        tables = [
            table
            for table in response.get("RouteTables", [])
            if not any(assoc.get("Main") for assoc in table.get("Associations", []))
        ]
        return self._network_descriptors(tables, "RouteTableId", ResourceKind.ROUTE_TABLE, label, patterns)

    def _vpc_security_groups(self, client: Any, vpc_id: str, label: str) -> Set[ResourceDescriptor]:
        response = client.describe_security_groups(Filters=[{"Name": "vpc-id", "Values": [vpc_id]}])
        return {
            ResourceDescriptor(
                kind=ResourceKind.SECURITY_GROUP,
                identifier=group["GroupId"],
                match_label=label,
                name=group.get("GroupName"),
            )
            for group in response.get("SecurityGroups", [])
            if group.get("GroupName") != "default"
        }

    @staticmethod
    def _network_descriptors(
        items: List[Dict[str, Any]],
        id_key: str,
        kind: ResourceKind,
        label: Optional[str],
        patterns: Optional[List[str]],
    ) -> Set[ResourceDescriptor]:
        """Build descriptors for network children.

        With a VPC label every item qualifies; with patterns only items whose
        Name tag matches do.
        """
        descriptors = set()
        for item in items:
            name = tags_to_dict(item.get("Tags")).get("Name")
            item_label = label if label else match_pattern(name, patterns or [])
            if item_label:
                descriptors.add(ResourceDescriptor(kind=kind, identifier=item[id_key], match_label=item_label, name=name))
        return descriptors
