"""boto3 session and client factory."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

# SDK-level retries cover throttling; ResourceDeleter retries dependency conflicts
BOTO_CONFIG = Config(retries={"max_attempts": 10, "mode": "standard"})


def create_session(profile_name: Optional[str] = None, region_name: Optional[str] = None) -> boto3.Session:
    """Create a boto3 session.

    Args:
        profile_name: Named credential profile (None uses ambient credentials)
        region_name: Default region for clients created from the session

    Returns:
        boto3 Session

    Raises:
        botocore.exceptions.ProfileNotFound: If the named profile does not exist
    """
    if profile_name:
        return boto3.Session(profile_name=profile_name, region_name=region_name)
    return boto3.Session(region_name=region_name)


def create_boto_client(
    service_name: str,
    region_name: Optional[str] = None,
    profile_name: Optional[str] = None,
    session: Optional[boto3.Session] = None,
) -> Any:
    """Create a boto3 client for a service.

    Args:
        service_name: AWS service name (e.g., "ec2", "s3")
        region_name: AWS region
        profile_name: AWS profile name (optional, ignored when session is given)
        session: Existing session to create the client from (optional)

    Returns:
        boto3 client
    """
    if session is None:
        session = create_session(profile_name=profile_name, region_name=region_name)
    logger.debug(f"Creating {service_name} client in {region_name or session.region_name}")
    return session.client(service_name, region_name=region_name, config=BOTO_CONFIG)


def known_regions(session: boto3.Session) -> List[str]:
    """List every region botocore knows about across partitions.

    Uses the bundled endpoint data, so no API call is made.
    """
    regions: List[str] = []
    for partition in session.get_available_partitions():
        regions.extend(session.get_available_regions("ec2", partition_name=partition, allow_non_regional=False))
    return regions
