"""Resource descriptor model.

A cloud resource discovered by name/tag convention and scheduled for deletion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional


class ResourceKind(Enum):
    """Resource kinds the reaper knows how to discover and delete.

    Values follow the ``service:type`` convention used in resource types.
    """

    EVENT_RULE = "events:rule"
    LAMBDA_FUNCTION = "lambda:function"
    LAMBDA_LAYER = "lambda:layer"
    LOG_GROUP = "logs:log-group"
    DASHBOARD = "cloudwatch:dashboard"
    METRIC_ALARM = "cloudwatch:alarm"
    EC2_INSTANCE = "ec2:instance"
    DB_INSTANCE = "rds:db-instance"
    DB_SUBNET_GROUP = "rds:db-subnet-group"
    S3_BUCKET = "s3:bucket"
    SECURITY_GROUP = "ec2:security-group"
    INTERNET_GATEWAY = "ec2:internet-gateway"
    SUBNET = "ec2:subnet"
    ROUTE_TABLE = "ec2:route-table"
    VPC = "ec2:vpc"
    IAM_ROLE = "iam:role"
    KEY_PAIR = "ec2:key-pair"

    @property
    def label(self) -> str:
        """Human-readable plural label used in console output."""
        return KIND_LABELS[self]

    @property
    def is_async(self) -> bool:
        """Whether deletion completes asynchronously and must be waited on."""
        return self in (ResourceKind.EC2_INSTANCE, ResourceKind.DB_INSTANCE)

    @classmethod
    def from_value(cls, value: str) -> "ResourceKind":
        """Look up a kind by its ``service:type`` value or enum name.

        Raises:
            ValueError: If the value names no known kind
        """
        for kind in cls:
            if value in (kind.value, kind.name, kind.name.lower()):
                return kind
        raise ValueError(f"Unknown resource kind: {value}")


KIND_LABELS: Dict[ResourceKind, str] = {
    ResourceKind.EVENT_RULE: "EventBridge rules",
    ResourceKind.LAMBDA_FUNCTION: "Lambda functions",
    ResourceKind.LAMBDA_LAYER: "Lambda layers",
    ResourceKind.LOG_GROUP: "CloudWatch log groups",
    ResourceKind.DASHBOARD: "CloudWatch dashboards",
    ResourceKind.METRIC_ALARM: "CloudWatch alarms",
    ResourceKind.EC2_INSTANCE: "EC2 instances",
    ResourceKind.DB_INSTANCE: "RDS database instances",
    ResourceKind.DB_SUBNET_GROUP: "RDS DB subnet groups",
    ResourceKind.S3_BUCKET: "S3 buckets",
    ResourceKind.SECURITY_GROUP: "Security groups",
    ResourceKind.INTERNET_GATEWAY: "Internet gateways",
    ResourceKind.SUBNET: "Subnets",
    ResourceKind.ROUTE_TABLE: "Route tables",
    ResourceKind.VPC: "VPCs",
    ResourceKind.IAM_ROLE: "IAM roles",
    ResourceKind.KEY_PAIR: "EC2 key pairs",
}


@dataclass(frozen=True)
class ResourceDescriptor:
    """Resource descriptor entity.

    Identity is the (kind, identifier) pair, so a resource reached through two
    discovery paths (e.g. a security group matched by name and by its VPC)
    collapses to a single descriptor inside a set.

    Attributes:
        kind: Resource kind
        identifier: Control-plane identifier (ID, name or ARN depending on kind)
        match_label: Pattern the resource's name or tag matched
        depends_on: Descriptors that must be deleted before this one
        name: Display name (Name tag or resource name), if different from identifier
        attributes: Extra kind-specific data captured at discovery (e.g. bucket region)
    """

    kind: ResourceKind
    identifier: str
    match_label: str = field(default="", compare=False)
    depends_on: FrozenSet["ResourceDescriptor"] = field(default_factory=frozenset, compare=False)
    name: Optional[str] = field(default=None, compare=False)
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def key(self) -> str:
        """Stable string key, unique across kinds."""
        return f"{self.kind.value}/{self.identifier}"

    @property
    def display_name(self) -> str:
        if self.name and self.name != self.identifier:
            return f"{self.identifier} ({self.name})"
        return self.identifier

    def with_dependencies(self, *dependencies: "ResourceDescriptor") -> "ResourceDescriptor":
        """Return a copy with additional dependencies merged in."""
        return ResourceDescriptor(
            kind=self.kind,
            identifier=self.identifier,
            match_label=self.match_label,
            depends_on=self.depends_on | frozenset(dependencies),
            name=self.name,
            attributes=dict(self.attributes),
        )
