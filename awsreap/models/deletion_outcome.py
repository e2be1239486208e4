"""Deletion outcome model.

Individual resource deletion attempt with result and metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .resource_descriptor import ResourceDescriptor


class DeletionStatus(Enum):
    """Individual resource deletion status."""

    DELETED = "deleted"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_cleared(self) -> bool:
        """Whether the resource is gone, so its dependents may proceed."""
        return self in (DeletionStatus.DELETED, DeletionStatus.NOT_FOUND)


@dataclass
class DeletionOutcome:
    """Deletion outcome entity.

    Records the result of deleting a single resource within a reaper run.

    Validation rules:
        - status=deleted/not_found: no error_code
        - status=failed: requires detail
        - status=timed_out: requires detail

    Attributes:
        descriptor: Resource the outcome belongs to
        status: Deletion result
        detail: Human-readable message (error text or note)
        error_code: AWS error code if the control plane rejected the call
        tier: Plan tier number the resource was deleted in
        timestamp: When the outcome was recorded (UTC)
    """

    descriptor: ResourceDescriptor
    status: DeletionStatus
    detail: Optional[str] = None
    error_code: Optional[str] = None
    tier: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def validate(self) -> bool:
        """Validate outcome invariants.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.status in (DeletionStatus.FAILED, DeletionStatus.TIMED_OUT):
            if not self.detail:
                raise ValueError(f"{self.status.value} status requires detail")
        elif self.error_code:
            raise ValueError(f"{self.status.value} status cannot have an error code")

        if self.tier is not None and self.tier < 1:
            raise ValueError("Tier numbers start at 1")

        return True
