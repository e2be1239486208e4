"""AWS resource deletion strategies.

Maps resource kinds to their deletion methods with proper error handling
and retry logic.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import ClientError, WaiterError

from ..aws.client import create_boto_client
from ..models.deletion_outcome import DeletionOutcome, DeletionStatus
from ..models.resource_descriptor import ResourceDescriptor, ResourceKind

logger = logging.getLogger(__name__)

# delete_objects accepts at most 1000 keys per request
S3_DELETE_BATCH_SIZE = 1000
# remove_targets accepts at most 100 target IDs per request
EVENTS_TARGET_BATCH_SIZE = 100

NOT_FOUND_CODES = {
    "NoSuchEntity",
    "NoSuchBucket",
    "ResourceNotFoundException",
    "ResourceNotFound",
    "DBInstanceNotFound",
    "DBSubnetGroupNotFoundFault",
    "NotFoundException",
}

TRANSIENT_CODES = {
    "DependencyViolation",
    "ResourceInUse",
    "ResourceInUseException",
    "InvalidDBSubnetGroupStateFault",
    "InvalidDBInstanceState",
    "DeleteConflict",
    "BucketNotEmpty",
    "OperationAbortedException",
    "ConcurrentModificationException",
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
}


def error_details(error: ClientError) -> Tuple[str, str]:
    """Extract (code, message) from a botocore ClientError."""
    error_info = error.response.get("Error", {})
    return error_info.get("Code", "Unknown"), error_info.get("Message", str(error))


def is_not_found(code: str) -> bool:
    """Whether an AWS error code means the resource does not exist."""
    return code in NOT_FOUND_CODES or code.endswith(".NotFound") or code.endswith("NotFoundFault")


class ResourceGone(Exception):
    """Raised by a strategy when a pre-read shows the resource no longer exists."""


class DeletionRefused(Exception):
    """Raised by a strategy when the resource must not or cannot be deleted."""


@dataclass
class WaitSettings:
    """Polling bounds for asynchronous deletions."""

    delay: int
    max_attempts: int

    @property
    def timeout_seconds(self) -> int:
        return self.delay * self.max_attempts

    def to_waiter_config(self) -> Dict[str, int]:
        return {"Delay": self.delay, "MaxAttempts": self.max_attempts}


class ResourceDeleter:
    """AWS resource deletion orchestrator.

    Handles deletion of each resource kind using the boto3 calls it needs,
    including the preparation steps (emptying buckets, revoking rules,
    detaching policies). Implements bounded retry with exponential backoff for
    transient rejections such as DependencyViolation.
    """

    # Deletion strategy mapping: kind -> (service, method)
    DELETION_STRATEGIES: Dict[ResourceKind, Tuple[str, str]] = {
        ResourceKind.EVENT_RULE: ("events", "_delete_event_rule"),
        ResourceKind.LAMBDA_FUNCTION: ("lambda", "_delete_lambda_function"),
        ResourceKind.LAMBDA_LAYER: ("lambda", "_delete_lambda_layer"),
        ResourceKind.LOG_GROUP: ("logs", "_delete_log_group"),
        ResourceKind.DASHBOARD: ("cloudwatch", "_delete_dashboard"),
        ResourceKind.METRIC_ALARM: ("cloudwatch", "_delete_metric_alarm"),
        ResourceKind.EC2_INSTANCE: ("ec2", "_delete_ec2_instance"),
        ResourceKind.DB_INSTANCE: ("rds", "_delete_db_instance"),
        ResourceKind.DB_SUBNET_GROUP: ("rds", "_delete_db_subnet_group"),
        ResourceKind.S3_BUCKET: ("s3", "_delete_s3_bucket"),
        ResourceKind.SECURITY_GROUP: ("ec2", "_delete_security_group"),
        ResourceKind.INTERNET_GATEWAY: ("ec2", "_delete_internet_gateway"),
        ResourceKind.SUBNET: ("ec2", "_delete_subnet"),
        ResourceKind.ROUTE_TABLE: ("ec2", "_delete_route_table"),
        ResourceKind.VPC: ("ec2", "_delete_vpc"),
        ResourceKind.IAM_ROLE: ("iam", "_delete_iam_role"),
        ResourceKind.KEY_PAIR: ("ec2", "_delete_key_pair"),
    }

    # Async completion mapping: kind -> (service, waiter, id parameter)
    WAITERS: Dict[ResourceKind, Tuple[str, str, str]] = {
        ResourceKind.EC2_INSTANCE: ("ec2", "instance_terminated", "InstanceIds"),
        ResourceKind.DB_INSTANCE: ("rds", "db_instance_deleted", "DBInstanceIdentifier"),
    }

    def __init__(
        self,
        region: str,
        aws_profile: Optional[str] = None,
        max_retries: int = 3,
        instance_wait: Optional[WaitSettings] = None,
        db_wait: Optional[WaitSettings] = None,
        session: Optional[boto3.Session] = None,
    ):
        """Initialize resource deleter.

        Args:
            region: AWS region for regional clients
            aws_profile: AWS profile name (optional, ignored when session is given)
            max_retries: Maximum number of attempts per resource (default: 3)
            instance_wait: Waiter bounds for instance termination
            db_wait: Waiter bounds for database deletion
            session: Session shared with the rest of the run (optional)
        """
        self.region = region
        self.aws_profile = aws_profile
        self.session = session
        self.max_retries = max_retries
        self.wait_settings: Dict[ResourceKind, WaitSettings] = {
            ResourceKind.EC2_INSTANCE: instance_wait or WaitSettings(delay=15, max_attempts=40),
            ResourceKind.DB_INSTANCE: db_wait or WaitSettings(delay=30, max_attempts=60),
        }
        self._clients: Dict[Tuple[str, str], Any] = {}

    def delete(self, descriptor: ResourceDescriptor) -> DeletionOutcome:
        """Delete a resource, retrying transient rejections.

        Never raises: every failure is recorded on the returned outcome.
        Asynchronous kinds return DELETED once deletion was accepted; confirm
        with wait_for_deletion().

        Args:
            descriptor: Resource to delete

        Returns:
            DeletionOutcome
        """
        if descriptor.kind not in self.DELETION_STRATEGIES:
            error_msg = f"Unsupported resource kind: {descriptor.kind.value}"
            logger.warning(error_msg)
            return DeletionOutcome(descriptor, DeletionStatus.FAILED, detail=error_msg, error_code="Unsupported")

        service, method = self.DELETION_STRATEGIES[descriptor.kind]
        strategy: Callable[[Any, ResourceDescriptor], Optional[str]] = getattr(self, method)

        for attempt in range(self.max_retries):
            try:
                client = self._client(service, descriptor.attributes.get("region") or self.region)
                note = strategy(client, descriptor)
                logger.info(f"Deleted {descriptor.kind.value}: {descriptor.identifier}")
                return DeletionOutcome(descriptor, DeletionStatus.DELETED, detail=note)

            except ResourceGone as e:
                logger.info(f"{descriptor.kind.value} {descriptor.identifier} already deleted")
                return DeletionOutcome(descriptor, DeletionStatus.NOT_FOUND, detail=str(e) or None)

            except DeletionRefused as e:
                logger.warning(f"Refusing to delete {descriptor.kind.value} {descriptor.identifier}: {e}")
                return DeletionOutcome(descriptor, DeletionStatus.FAILED, detail=str(e), error_code="Refused")

            except ClientError as e:
                code, message = error_details(e)

                if is_not_found(code):
                    logger.info(f"{descriptor.kind.value} {descriptor.identifier} already deleted")
                    return DeletionOutcome(descriptor, DeletionStatus.NOT_FOUND, detail=message)

                if code in TRANSIENT_CODES and attempt < self.max_retries - 1:
                    wait_time = 2**attempt  # Exponential backoff
                    logger.debug(
                        f"{code} for {descriptor.identifier}, "
                        f"retrying in {wait_time}s (attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(wait_time)
                    continue

                logger.error(f"Failed to delete {descriptor.identifier}: {code} - {message}")
                return DeletionOutcome(
                    descriptor, DeletionStatus.FAILED, detail=f"{code}: {message}", error_code=code
                )

            except Exception as e:
                error_msg = f"Unexpected error deleting {descriptor.kind.value} {descriptor.identifier}: {e}"
                logger.error(error_msg)
                return DeletionOutcome(descriptor, DeletionStatus.FAILED, detail=error_msg, error_code="Unexpected")

        # Loop only exits without returning when max_retries < 1
        return DeletionOutcome(
            descriptor, DeletionStatus.FAILED, detail="No deletion attempts allowed", error_code="NoAttempts"
        )

    def wait_for_deletion(self, descriptors: List[ResourceDescriptor]) -> List[DeletionOutcome]:
        """Block until each asynchronous deletion reaches its terminal state.

        Args:
            descriptors: Resources whose deletion was accepted

        Returns:
            One outcome per descriptor: DELETED, TIMED_OUT or FAILED
        """
        outcomes = []
        for descriptor in descriptors:
            if descriptor.kind not in self.WAITERS:
                outcomes.append(DeletionOutcome(descriptor, DeletionStatus.DELETED))
                continue

            service, waiter_name, id_param = self.WAITERS[descriptor.kind]
            settings = self.wait_settings[descriptor.kind]
            resource_id: Any = [descriptor.identifier] if id_param.endswith("s") else descriptor.identifier

            try:
                waiter = self._client(service, self.region).get_waiter(waiter_name)
                waiter.wait(**{id_param: resource_id}, WaiterConfig=settings.to_waiter_config())
                outcomes.append(DeletionOutcome(descriptor, DeletionStatus.DELETED, detail="Deletion confirmed"))

            except WaiterError as e:
                error_msg = f"Deletion not confirmed within {settings.timeout_seconds}s: {e}"
                logger.warning(f"{descriptor.kind.value} {descriptor.identifier}: {error_msg}")
                outcomes.append(DeletionOutcome(descriptor, DeletionStatus.TIMED_OUT, detail=error_msg))

            except ClientError as e:
                code, message = error_details(e)
                logger.error(f"Failed waiting for {descriptor.identifier}: {code} - {message}")
                outcomes.append(
                    DeletionOutcome(descriptor, DeletionStatus.FAILED, detail=f"{code}: {message}", error_code=code)
                )

            except Exception as e:
                error_msg = f"Unexpected error waiting for {descriptor.kind.value} {descriptor.identifier}: {e}"
                logger.error(error_msg)
                outcomes.append(
                    DeletionOutcome(descriptor, DeletionStatus.FAILED, detail=error_msg, error_code="Unexpected")
                )

        return outcomes

    def _client(self, service: str, region: str) -> Any:
        key = (service, region)
        if key not in self._clients:
            self._clients[key] = create_boto_client(
                service_name=service,
                region_name=region,
                profile_name=self.aws_profile,
                session=self.session,
            )
        return self._clients[key]

    @staticmethod
    def _ignore_not_found(call: Callable[..., Any], **kwargs: Any) -> Any:
        """Run a preparation step, tolerating a sub-resource that is already gone."""
        try:
            return call(**kwargs)
        except ClientError as e:
            code, _ = error_details(e)
            if is_not_found(code):
                logger.debug(f"Skipping {getattr(call, '__name__', 'call')}: {code}")
                return None
            raise

    # Triggers and functions

    def _delete_event_rule(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        rule = descriptor.identifier
        bus = descriptor.attributes.get("event_bus_name", "default")

        target_ids: List[str] = []
        for page in client.get_paginator("list_targets_by_rule").paginate(Rule=rule, EventBusName=bus):
            target_ids.extend(target["Id"] for target in page.get("Targets", []))

        # A rule cannot be deleted while it still has targets
        for start in range(0, len(target_ids), EVENTS_TARGET_BATCH_SIZE):
            client.remove_targets(Rule=rule, EventBusName=bus, Ids=target_ids[start : start + EVENTS_TARGET_BATCH_SIZE])

        client.delete_rule(Name=rule, EventBusName=bus)
        return f"Removed {len(target_ids)} targets" if target_ids else None

    def _delete_lambda_function(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        client.delete_function(FunctionName=descriptor.identifier)
        return None

    def _delete_lambda_layer(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        versions: List[int] = []
        for page in client.get_paginator("list_layer_versions").paginate(LayerName=descriptor.identifier):
            versions.extend(version["Version"] for version in page.get("LayerVersions", []))

        # A layer exists only as long as it has versions
        if not versions:
            raise ResourceGone("Layer has no versions")

        for version in versions:
            self._ignore_not_found(
                client.delete_layer_version, LayerName=descriptor.identifier, VersionNumber=version
            )
        return f"Deleted {len(versions)} layer versions"

    # Observability

    def _delete_log_group(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        client.delete_log_group(logGroupName=descriptor.identifier)
        return None

    def _delete_dashboard(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        client.delete_dashboards(DashboardNames=[descriptor.identifier])
        return None

    def _delete_metric_alarm(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        # delete_alarms succeeds silently for unknown names
        existing = client.describe_alarms(AlarmNames=[descriptor.identifier]).get("MetricAlarms", [])
        if not existing:
            raise ResourceGone()
        client.delete_alarms(AlarmNames=[descriptor.identifier])
        return None

    # Compute and databases

    def _delete_ec2_instance(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        client.modify_instance_attribute(InstanceId=descriptor.identifier, DisableApiTermination={"Value": False})
        client.terminate_instances(InstanceIds=[descriptor.identifier])
        return None

    def _delete_db_instance(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        if descriptor.attributes.get("status") == "deleting":
            return "Deletion already in progress"

        if descriptor.attributes.get("deletion_protection"):
            client.modify_db_instance(
                DBInstanceIdentifier=descriptor.identifier,
                DeletionProtection=False,
                ApplyImmediately=True,
            )

        # Skip final snapshot for faster deletion
        client.delete_db_instance(
            DBInstanceIdentifier=descriptor.identifier,
            SkipFinalSnapshot=True,
            DeleteAutomatedBackups=True,
        )
        return None

    def _delete_db_subnet_group(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        if descriptor.identifier == "default":
            raise DeletionRefused("The default DB subnet group is never deleted")
        client.delete_db_subnet_group(DBSubnetGroupName=descriptor.identifier)
        return None

    # Object storage

    def _delete_s3_bucket(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        purged = self.purge_bucket(client, descriptor.identifier)
        client.delete_bucket(Bucket=descriptor.identifier)
        return f"Purged {purged} object versions" if purged else None

    def purge_bucket(self, client: Any, bucket: str) -> int:
        """Delete every object version and delete marker in a bucket.

        Unversioned buckets list their objects with VersionId "null", so one
        pass covers both cases.

        Args:
            client: S3 client for the bucket's region
            bucket: Bucket name

        Returns:
            Number of entries deleted
        """
        purged = 0
        for page in client.get_paginator("list_object_versions").paginate(Bucket=bucket):
            entries = [
                {"Key": entry["Key"], "VersionId": entry["VersionId"]}
                for entry in page.get("Versions", []) + page.get("DeleteMarkers", [])
            ]
            for start in range(0, len(entries), S3_DELETE_BATCH_SIZE):
                batch = entries[start : start + S3_DELETE_BATCH_SIZE]
                response = client.delete_objects(Bucket=bucket, Delete={"Objects": batch, "Quiet": True})
                errors = response.get("Errors", []) if isinstance(response, dict) else []
                if errors:
                    logger.warning(f"{len(errors)} entries in {bucket} could not be deleted: {errors[0].get('Message')}")
                purged += len(batch) - len(errors)

        logger.debug(f"Purged {purged} object versions from {bucket}")
        return purged

    # Networking

    def _delete_security_group(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        # Read the live rule set; a cached copy can make the revoke call fail
        groups = client.describe_security_groups(GroupIds=[descriptor.identifier]).get("SecurityGroups", [])
        if not groups:
            raise ResourceGone()

        group = groups[0]
        if group.get("GroupName") == "default":
            raise DeletionRefused("Default security groups are never deleted")

        ingress = group.get("IpPermissions", [])
        egress = group.get("IpPermissionsEgress", [])
        if ingress:
            self._ignore_not_found(
                client.revoke_security_group_ingress, GroupId=descriptor.identifier, IpPermissions=ingress
            )
        if egress:
            self._ignore_not_found(
                client.revoke_security_group_egress, GroupId=descriptor.identifier, IpPermissions=egress
            )

        client.delete_security_group(GroupId=descriptor.identifier)
        return None

    def _delete_internet_gateway(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        gateways = client.describe_internet_gateways(InternetGatewayIds=[descriptor.identifier]).get(
            "InternetGateways", []
        )
        if not gateways:
            raise ResourceGone()

        for attachment in gateways[0].get("Attachments", []):
            self._ignore_not_found(
                client.detach_internet_gateway,
                InternetGatewayId=descriptor.identifier,
                VpcId=attachment["VpcId"],
            )

        client.delete_internet_gateway(InternetGatewayId=descriptor.identifier)
        return None

    def _delete_subnet(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        client.delete_subnet(SubnetId=descriptor.identifier)
        return None

    def _delete_route_table(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        tables = client.describe_route_tables(RouteTableIds=[descriptor.identifier]).get("RouteTables", [])
        if not tables:
            raise ResourceGone()

        is_main = False
        for association in tables[0].get("Associations", []):
            # The main association cannot be disassociated
            if association.get("Main"):
                is_main = True
                continue
            self._ignore_not_found(
                client.disassociate_route_table, AssociationId=association["RouteTableAssociationId"]
            )

        if is_main:
            raise DeletionRefused("Main route table is removed together with its VPC")

        client.delete_route_table(RouteTableId=descriptor.identifier)
        return None

    def _delete_vpc(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        client.delete_vpc(VpcId=descriptor.identifier)
        return None

    # Identity and credentials

    def _delete_iam_role(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        role = descriptor.identifier

        for page in client.get_paginator("list_attached_role_policies").paginate(RoleName=role):
            for policy in page.get("AttachedPolicies", []):
                self._ignore_not_found(client.detach_role_policy, RoleName=role, PolicyArn=policy["PolicyArn"])

        for page in client.get_paginator("list_role_policies").paginate(RoleName=role):
            for policy_name in page.get("PolicyNames", []):
                self._ignore_not_found(client.delete_role_policy, RoleName=role, PolicyName=policy_name)

        for page in client.get_paginator("list_instance_profiles_for_role").paginate(RoleName=role):
            for profile in page.get("InstanceProfiles", []):
                name = profile["InstanceProfileName"]
                self._ignore_not_found(client.remove_role_from_instance_profile, InstanceProfileName=name, RoleName=role)
                self._ignore_not_found(client.delete_instance_profile, InstanceProfileName=name)

        client.delete_role(RoleName=role)
        return None

    def _delete_key_pair(self, client: Any, descriptor: ResourceDescriptor) -> Optional[str]:
        client.delete_key_pair(KeyName=descriptor.identifier)
        return None
