"""AWS credential identity lookup."""

from __future__ import annotations

import logging
from typing import Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .client import create_boto_client

logger = logging.getLogger(__name__)


class CredentialValidationError(Exception):
    """Raised when the caller identity cannot be resolved."""


def validate_credentials(
    profile_name: Optional[str] = None,
    region_name: Optional[str] = None,
    session: Optional[boto3.Session] = None,
) -> Dict[str, str]:
    """Resolve the caller identity via STS.

    Args:
        profile_name: AWS profile name (optional)
        region_name: AWS region (optional)
        session: Existing session to query with (optional)

    Returns:
        Dictionary with account_id, arn and user_id

    Raises:
        CredentialValidationError: If credentials are missing or rejected
    """
    try:
        sts = create_boto_client("sts", region_name=region_name, profile_name=profile_name, session=session)
        identity = sts.get_caller_identity()
    except (BotoCoreError, ClientError) as e:
        raise CredentialValidationError(f"Unable to validate AWS credentials: {e}") from e

    logger.debug(f"Resolved caller identity {identity.get('Arn')}")
    return {
        "account_id": identity["Account"],
        "arn": identity.get("Arn", ""),
        "user_id": identity.get("UserId", ""),
    }
