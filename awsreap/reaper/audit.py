"""Audit storage for reap operations.

Stores and retrieves audit logs in YAML format for troubleshooting and for
checking later what a run removed.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import yaml

from ..models.deletion_outcome import DeletionOutcome
from ..models.reap_operation import ReapOperation


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() + "Z" if value else None


class AuditStorage:
    """Audit log storage and retrieval.

    Stores reap operation audit logs as YAML files organized by year/month.

    Storage structure:
        ~/.awsreap/audit-logs/
            2026/
                10/
                    operation-op_123.yaml

    Attributes:
        storage_dir: Base directory for audit logs
    """

    def __init__(self, storage_dir: Optional[str] = None) -> None:
        """Initialize audit storage.

        Args:
            storage_dir: Base directory for audit logs (default: ~/.awsreap/audit-logs)
        """
        if storage_dir is None:
            storage_dir = str(Path.home() / ".awsreap" / "audit-logs")

        self.storage_dir = Path(storage_dir).expanduser()
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def log_operation(self, operation: ReapOperation, outcomes: Iterable[DeletionOutcome]) -> Path:
        """Write an operation and its per-resource outcomes to a YAML file.

        Overwrites an existing log with the same operation ID.

        Args:
            operation: Reap operation to log
            outcomes: Outcomes recorded during the run

        Returns:
            Path of the written audit file
        """
        year_month_dir = self.storage_dir / str(operation.timestamp.year) / f"{operation.timestamp.month:02d}"
        year_month_dir.mkdir(parents=True, exist_ok=True)

        audit_data = {
            "metadata": {
                "version": "1.0",
                "log_type": "resource_reap",
                "created_at": _iso(datetime.utcnow()),
            },
            "operation": {
                "operation_id": operation.operation_id,
                "timestamp": _iso(operation.timestamp),
                "region": operation.region,
                "aws_profile": operation.aws_profile,
                "account_id": operation.account_id,
                "mode": operation.mode.value,
                "status": operation.status.value,
                "total_resources": operation.total_resources,
                "deleted_count": operation.deleted_count,
                "not_found_count": operation.not_found_count,
                "failed_count": operation.failed_count,
                "timed_out_count": operation.timed_out_count,
                "started_at": _iso(operation.started_at),
                "completed_at": _iso(operation.completed_at),
                "duration_seconds": operation.duration_seconds,
            },
            "outcomes": [
                {
                    "resource_kind": outcome.descriptor.kind.value,
                    "identifier": outcome.descriptor.identifier,
                    "name": outcome.descriptor.name,
                    "match_label": outcome.descriptor.match_label,
                    "tier": outcome.tier,
                    "status": outcome.status.value,
                    "detail": outcome.detail,
                    "error_code": outcome.error_code,
                    "timestamp": _iso(outcome.timestamp),
                }
                for outcome in outcomes
            ],
        }

        audit_file = year_month_dir / f"operation-{operation.operation_id}.yaml"
        with open(audit_file, "w") as f:
            yaml.dump(audit_data, f, default_flow_style=False, sort_keys=False)

        return audit_file

    def get_operation(self, operation_id: str) -> Optional[dict]:
        """Retrieve operation audit log by ID.

        Returns:
            Audit log dictionary if found, None otherwise
        """
        for audit_file in self.storage_dir.glob(f"*/*/operation-{operation_id}.yaml"):
            with open(audit_file, "r") as f:
                return yaml.safe_load(f)

        return None

    def query_operations(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> list[dict]:
        """Query operations within date range.

        Args:
            since: Start date (inclusive), None for all
            until: End date (inclusive), None for all

        Returns:
            List of operation audit logs matching criteria, oldest first
        """
        results = []

        for audit_file in sorted(self.storage_dir.glob("*/*/operation-*.yaml")):
            with open(audit_file, "r") as f:
                audit_data = yaml.safe_load(f)

            timestamp = datetime.fromisoformat(audit_data["operation"]["timestamp"].rstrip("Z"))

            if since and timestamp < since:
                continue
            if until and timestamp > until:
                continue

            results.append(audit_data)

        results.sort(key=lambda data: data["operation"]["timestamp"])
        return results
