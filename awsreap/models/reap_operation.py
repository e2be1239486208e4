"""Reap operation model.

Represents a complete cleanup run with metadata and execution context.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class OperationMode(Enum):
    """Operation execution mode."""

    DRY_RUN = "dry-run"
    EXECUTE = "execute"


class OperationStatus(Enum):
    """Operation execution status with state transitions."""

    PLANNED = "planned"
    EXECUTING = "executing"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class ReapOperation:
    """Reap operation entity.

    Represents one reaper invocation. Tracks overall progress and the tally of
    per-resource outcomes.

    State transitions:
        planned → executing → completed (nothing failed)
        planned → executing → partial (some failed or timed out)
        planned → executing → failed (every attempted deletion failed)

    Attributes:
        operation_id: Unique identifier for the operation
        timestamp: When operation was initiated (UTC)
        region: AWS region the run targeted
        mode: dry-run or execute
        status: Current execution status
        total_resources: Total resources in the deletion plan
        deleted_count: Number deleted (default: 0)
        not_found_count: Number already gone at deletion time (default: 0)
        failed_count: Number the control plane refused to delete (default: 0)
        timed_out_count: Number whose async deletion was not confirmed (default: 0)
        account_id: AWS account ID, if it could be resolved (optional)
        aws_profile: AWS profile used for credentials (optional)
        started_at: When execution started (optional, execute mode only)
        completed_at: When execution completed (optional)
        duration_seconds: Total execution duration (optional)
    """

    operation_id: str
    timestamp: datetime
    region: str
    mode: OperationMode
    status: OperationStatus
    total_resources: int
    deleted_count: int = 0
    not_found_count: int = 0
    failed_count: int = 0
    timed_out_count: int = 0
    account_id: Optional[str] = None
    aws_profile: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    @property
    def processed_count(self) -> int:
        return self.deleted_count + self.not_found_count + self.failed_count + self.timed_out_count

    def validate(self) -> bool:
        """Validate operation invariants.

        Validation rules:
            - outcome counts sum to total_resources once execution finished
            - completed_at must be after started_at
            - dry-run mode must have planned status

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.status in (OperationStatus.COMPLETED, OperationStatus.PARTIAL, OperationStatus.FAILED):
            if self.processed_count != self.total_resources:
                raise ValueError("Resource counts don't match total")

        if self.completed_at and self.started_at:
            if self.completed_at < self.started_at:
                raise ValueError("Completion time before start time")

        if self.mode == OperationMode.DRY_RUN and self.status != OperationStatus.PLANNED:
            raise ValueError("Dry-run mode must have planned status")

        return True
