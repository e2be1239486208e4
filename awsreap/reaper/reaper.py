"""Resource reaper for cleanup operations.

Main orchestrator: discovery, planning, tiered execution and run summaries.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from ..models.deletion_outcome import DeletionOutcome, DeletionStatus
from ..models.deletion_plan import DeletionPlan, DeletionTier
from ..models.reap_operation import OperationMode, OperationStatus, ReapOperation
from ..models.resource_descriptor import ResourceDescriptor, ResourceKind
from .audit import AuditStorage
from .deleter import ResourceDeleter
from .discovery import ResourceDiscoverer
from .planner import build_deletion_plan

logger = logging.getLogger(__name__)


class ResourceReaper:
    """Dependency-ordered resource reaper.

    Coordinates discovery, deletion planning, tiered deletion and audit
    logging. Execution is best-effort: a failed deletion is recorded and the
    run continues; asynchronous deletions are waited on before the next tier.

    Attributes:
        discoverer: Resource discoverer for the target region
        deleter: Deletion strategies
        audit_storage: Audit storage for run logs (optional)
        security_group_grace_seconds: Pause before the first security-group tier
    """

    def __init__(
        self,
        discoverer: ResourceDiscoverer,
        deleter: ResourceDeleter,
        audit_storage: Optional[AuditStorage] = None,
        region: str = "",
        aws_profile: Optional[str] = None,
        account_id: Optional[str] = None,
        security_group_grace_seconds: float = 10.0,
    ) -> None:
        self.discoverer = discoverer
        self.deleter = deleter
        self.audit_storage = audit_storage
        self.region = region
        self.aws_profile = aws_profile
        self.account_id = account_id
        self.security_group_grace_seconds = security_group_grace_seconds

    def discover(self, kind: ResourceKind, patterns: List[str]) -> Set[ResourceDescriptor]:
        """Discover resources of one kind. Failures yield an empty set."""
        return self.discoverer.discover(kind, patterns)

    def discover_all(self, match_patterns: Dict[ResourceKind, List[str]]) -> Dict[ResourceKind, Set[ResourceDescriptor]]:
        """Discover every kind named in the pattern map."""
        return self.discoverer.discover_all(match_patterns)

    def plan(self, descriptors: Iterable[ResourceDescriptor]) -> DeletionPlan:
        """Compute a tiered deletion plan for the descriptors."""
        return build_deletion_plan(descriptors)

    def preview(self, match_patterns: Dict[ResourceKind, List[str]]) -> Tuple[DeletionPlan, ReapOperation]:
        """Discover and plan without deleting anything (dry-run mode).

        Args:
            match_patterns: Name/tag patterns per resource kind

        Returns:
            Tuple of (deletion plan, operation in planned status)
        """
        found = self.discover_all(match_patterns)
        plan = self.plan(descriptor for descriptors in found.values() for descriptor in descriptors)

        operation = ReapOperation(
            operation_id=f"op_{uuid.uuid4()}",
            timestamp=datetime.utcnow(),
            region=self.region,
            mode=OperationMode.DRY_RUN,
            status=OperationStatus.PLANNED,
            total_resources=plan.resource_count,
            account_id=self.account_id,
            aws_profile=self.aws_profile,
        )
        return plan, operation

    def execute(
        self,
        plan: DeletionPlan,
        confirmed: bool = False,
        on_tier_start: Optional[Callable[[DeletionTier], None]] = None,
        on_wait: Optional[Callable[[ResourceKind, int], None]] = None,
    ) -> Iterator[DeletionOutcome]:
        """Execute the deletion plan.

        Returns a lazy, single-pass iterator of outcomes. Each tier's
        deletions are issued one at a time; asynchronous kinds are waited on
        before the tier's outcomes are yielded and before the next tier starts.

        Args:
            plan: Deletion plan to execute
            confirmed: Must be True to proceed with deletion
            on_tier_start: Called with each tier before its deletions are issued
            on_wait: Called with (kind, count) before blocking on async deletions

        Returns:
            Iterator of DeletionOutcome

        Raises:
            ValueError: If not confirmed
        """
        if not confirmed:
            raise ValueError("Deletion requires explicit confirmation. Set confirmed=True.")

        return self._execute_tiers(plan, on_tier_start, on_wait)

    def _execute_tiers(
        self,
        plan: DeletionPlan,
        on_tier_start: Optional[Callable[[DeletionTier], None]],
        on_wait: Optional[Callable[[ResourceKind, int], None]],
    ) -> Iterator[DeletionOutcome]:
        planned_tiers = {descriptor.key: tier.number for tier in plan for descriptor in tier.descriptors}
        statuses: Dict[str, DeletionStatus] = {}
        grace_applied = False

        for tier in plan:
            if on_tier_start:
                on_tier_start(tier)

            if ResourceKind.SECURITY_GROUP in tier.kinds and not grace_applied:
                grace_applied = True
                if self.security_group_grace_seconds > 0:
                    logger.info(f"Waiting {self.security_group_grace_seconds}s for network interfaces to release")
                    time.sleep(self.security_group_grace_seconds)

            pending: List[ResourceDescriptor] = []
            for descriptor in tier.ordered():
                blocker = self._uncleared_dependency(descriptor, tier.number, planned_tiers, statuses)
                if blocker is not None:
                    outcome = DeletionOutcome(
                        descriptor,
                        DeletionStatus.FAILED,
                        detail=f"Dependency {blocker.kind.value} {blocker.identifier} was not deleted",
                        error_code="DependencyNotDeleted",
                    )
                else:
                    outcome = self.deleter.delete(descriptor)

                if outcome.status == DeletionStatus.DELETED and descriptor.kind.is_async:
                    pending.append(descriptor)
                    continue

                outcome.tier = tier.number
                statuses[descriptor.key] = outcome.status
                yield outcome

            if pending:
                for kind in tier.kinds:
                    count = sum(1 for descriptor in pending if descriptor.kind == kind)
                    if count and on_wait:
                        on_wait(kind, count)

                for outcome in self.deleter.wait_for_deletion(pending):
                    outcome.tier = tier.number
                    statuses[outcome.descriptor.key] = outcome.status
                    yield outcome

    @staticmethod
    def _uncleared_dependency(
        descriptor: ResourceDescriptor,
        tier_number: int,
        planned_tiers: Dict[str, int],
        statuses: Dict[str, DeletionStatus],
    ) -> Optional[ResourceDescriptor]:
        """First dependency from an earlier tier that has not reached Deleted or NotFound."""
        for dependency in sorted(descriptor.depends_on, key=lambda d: d.key):
            if planned_tiers.get(dependency.key, tier_number) >= tier_number:
                continue
            status = statuses.get(dependency.key)
            if status is None or not status.is_cleared:
                return dependency
        return None

    def summarize(
        self,
        plan: DeletionPlan,
        outcomes: List[DeletionOutcome],
        started_at: datetime,
        completed_at: Optional[datetime] = None,
    ) -> ReapOperation:
        """Build the operation record for an executed plan.

        Args:
            plan: Executed plan
            outcomes: Every outcome the execution yielded
            started_at: When execution started
            completed_at: When execution finished (default: now)

        Returns:
            ReapOperation with final status and counts
        """
        completed_at = completed_at or datetime.utcnow()
        counts = {status: 0 for status in DeletionStatus}
        for outcome in outcomes:
            counts[outcome.status] += 1

        succeeded = counts[DeletionStatus.DELETED] + counts[DeletionStatus.NOT_FOUND]
        failed = counts[DeletionStatus.FAILED] + counts[DeletionStatus.TIMED_OUT]

        if failed > 0:
            final_status = OperationStatus.PARTIAL if succeeded > 0 else OperationStatus.FAILED
        else:
            final_status = OperationStatus.COMPLETED

        return ReapOperation(
            operation_id=f"op_{uuid.uuid4()}",
            timestamp=started_at,
            region=self.region,
            mode=OperationMode.EXECUTE,
            status=final_status,
            total_resources=plan.resource_count,
            deleted_count=counts[DeletionStatus.DELETED],
            not_found_count=counts[DeletionStatus.NOT_FOUND],
            failed_count=counts[DeletionStatus.FAILED],
            timed_out_count=counts[DeletionStatus.TIMED_OUT],
            account_id=self.account_id,
            aws_profile=self.aws_profile,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=(completed_at - started_at).total_seconds(),
        )

    def record(self, operation: ReapOperation, outcomes: List[DeletionOutcome]) -> Optional[Path]:
        """Write the audit log for an operation. Storage errors are logged, not raised."""
        if self.audit_storage is None:
            return None

        try:
            return self.audit_storage.log_operation(operation, outcomes)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not write audit log for {operation.operation_id}: {e}")
            return None
