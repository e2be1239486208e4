"""Base class for resource collectors."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..aws.client import BOTO_CONFIG
from ..models.resource_descriptor import ResourceDescriptor, ResourceKind


def match_pattern(value: Optional[str], patterns: Iterable[str]) -> Optional[str]:
    """Return the first pattern contained in value.

    Checks the case-sensitive substring first, then a case-insensitive one, so
    both "task" and "Task" style names are caught by either pattern.

    Args:
        value: Resource name or tag value
        patterns: Substring patterns

    Returns:
        The matching pattern, or None
    """
    if not value:
        return None

    patterns = list(patterns)
    for pattern in patterns:
        if pattern in value:
            return pattern

    lowered = value.lower()
    for pattern in patterns:
        if pattern.lower() in lowered:
            return pattern

    return None


def tags_to_dict(tags: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    """Convert an AWS Key/Value tag list to a dictionary."""
    return {tag["Key"]: tag["Value"] for tag in tags or [] if "Key" in tag}


class BaseResourceCollector(ABC):
    """Abstract base class for all resource collectors.

    Each collector owns one AWS service and discovers the resource kinds that
    live in it. Collectors raise on control-plane errors; the discoverer turns
    a failed query into an empty result.
    """

    def __init__(self, session: Any, region: str) -> None:
        """Initialize the collector.

        Args:
            session: boto3 Session
            region: AWS region to query
        """
        self.session = session
        self.region = region
        self.logger = logging.getLogger(self.__class__.__module__)

    @property
    @abstractmethod
    def service_name(self) -> str:
        """Primary AWS service name for this collector (e.g., "ec2")."""

    @property
    @abstractmethod
    def supported_kinds(self) -> Tuple[ResourceKind, ...]:
        """Resource kinds this collector can discover."""

    @abstractmethod
    def collect(self, kind: ResourceKind, patterns: List[str]) -> Set[ResourceDescriptor]:
        """Discover resources of a kind whose name or tag matches any pattern.

        Args:
            kind: Resource kind to discover
            patterns: Substring patterns

        Returns:
            Matching resource descriptors
        """

    def _create_client(self, service_name: Optional[str] = None, region_name: Optional[str] = None) -> Any:
        return self.session.client(
            service_name or self.service_name,
            region_name=region_name or self.region,
            config=BOTO_CONFIG,
        )

    def _unsupported(self, kind: ResourceKind) -> ValueError:
        return ValueError(f"{self.__class__.__name__} does not collect {kind.value}")
