"""Data models for resource discovery, deletion planning and run outcomes."""

from __future__ import annotations

from .deletion_outcome import DeletionOutcome, DeletionStatus
from .deletion_plan import DeletionPlan, DeletionTier
from .reap_operation import OperationMode, OperationStatus, ReapOperation
from .resource_descriptor import ResourceDescriptor, ResourceKind

__all__ = [
    "DeletionOutcome",
    "DeletionPlan",
    "DeletionStatus",
    "DeletionTier",
    "OperationMode",
    "OperationStatus",
    "ReapOperation",
    "ResourceDescriptor",
    "ResourceKind",
]
