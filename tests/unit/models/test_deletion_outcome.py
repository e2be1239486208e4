"""Tests for DeletionOutcome model.

Test coverage for per-resource outcome validation rules.
"""

from __future__ import annotations

import pytest

from awsreap.models.deletion_outcome import DeletionOutcome, DeletionStatus
from awsreap.models.resource_descriptor import ResourceDescriptor, ResourceKind

BUCKET = ResourceDescriptor(ResourceKind.S3_BUCKET, "task-uploads")


class TestDeletionStatus:
    def test_cleared_statuses(self) -> None:
        assert DeletionStatus.DELETED.is_cleared
        assert DeletionStatus.NOT_FOUND.is_cleared
        assert not DeletionStatus.FAILED.is_cleared
        assert not DeletionStatus.TIMED_OUT.is_cleared


class TestDeletionOutcome:
    """Test suite for DeletionOutcome model."""

    def test_deleted_outcome_is_valid(self) -> None:
        outcome = DeletionOutcome(BUCKET, DeletionStatus.DELETED, tier=7)

        assert outcome.validate() is True
        assert outcome.timestamp is not None

    def test_failed_requires_detail(self) -> None:
        outcome = DeletionOutcome(BUCKET, DeletionStatus.FAILED, error_code="AccessDenied")

        with pytest.raises(ValueError, match="requires detail"):
            outcome.validate()

    def test_timed_out_requires_detail(self) -> None:
        outcome = DeletionOutcome(BUCKET, DeletionStatus.TIMED_OUT)

        with pytest.raises(ValueError, match="requires detail"):
            outcome.validate()

    def test_not_found_cannot_have_error_code(self) -> None:
        outcome = DeletionOutcome(BUCKET, DeletionStatus.NOT_FOUND, error_code="NoSuchBucket")

        with pytest.raises(ValueError, match="cannot have an error code"):
            outcome.validate()

    def test_tier_must_be_positive(self) -> None:
        outcome = DeletionOutcome(BUCKET, DeletionStatus.DELETED, tier=0)

        with pytest.raises(ValueError, match="Tier numbers start at 1"):
            outcome.validate()
