"""Console reporting for reap runs."""

from __future__ import annotations

from typing import Dict, List, Optional, Set

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..models.deletion_outcome import DeletionOutcome, DeletionStatus
from ..models.deletion_plan import DeletionPlan, DeletionTier
from ..models.reap_operation import ReapOperation
from ..models.resource_descriptor import ResourceDescriptor, ResourceKind

STATUS_STYLES = {
    DeletionStatus.DELETED: ("✓", "green"),
    DeletionStatus.NOT_FOUND: ("ℹ", "yellow"),
    DeletionStatus.FAILED: ("✗", "red"),
    DeletionStatus.TIMED_OUT: ("✗", "red"),
}


class ReapReporter:
    """Format and display reap progress and results."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize reap reporter.

        Args:
            console: Rich console instance (creates new one if not provided)
        """
        self.console = console or Console()

    def header(self, region: str, profile: Optional[str] = None, account_id: Optional[str] = None) -> None:
        """Display the run header."""
        self.console.print()
        self.console.print(
            Panel(
                f"[bold]AWS Free Tier Reaper[/bold]\n"
                f"Region: {region}\n"
                f"Profile: {profile or '(default credentials)'}\n"
                f"Account: {account_id or '(unknown)'}",
                style="cyan",
            )
        )
        self.console.print()

    def warning(self, match_patterns: Dict[ResourceKind, List[str]]) -> None:
        """Display the itemized list of resource categories that will be deleted."""
        lines = ["[bold]This will permanently delete every matching resource:[/bold]", ""]
        for kind in ResourceKind:
            patterns = match_patterns.get(kind)
            if patterns:
                lines.append(f"  • {kind.label} matching {', '.join(repr(p) for p in patterns)}")
        lines.append("")
        lines.append("[bold]This cannot be undone.[/bold]")

        self.console.print(Panel("\n".join(lines), title="⚠️  WARNING", style="bold red"))
        self.console.print()

    def discovery_summary(self, found: Dict[ResourceKind, Set[ResourceDescriptor]]) -> None:
        """Display one line per discovered kind; empty kinds are reported as info."""
        for kind, descriptors in found.items():
            if descriptors:
                self.console.print(f"  Found {len(descriptors)} {kind.label}", style="cyan")
            else:
                self.console.print(f"ℹ No {kind.label} found", style="yellow")
        self.console.print()

    def display_plan(self, plan: DeletionPlan) -> None:
        """Display the deletion plan as a table, one row per resource in execution order."""
        if plan.is_empty:
            self.console.print("✓ Nothing to delete - no matching resources found", style="green")
            self.console.print()
            return

        table = Table(title="Deletion Plan", show_header=True, header_style="bold magenta")
        table.add_column("Tier", justify="right", style="cyan", width=6)
        table.add_column("Kind", style="yellow")
        table.add_column("Identifier", style="white")
        table.add_column("Matched", style="dim")

        for tier in plan:
            for descriptor in tier.ordered():
                table.add_row(str(tier.number), descriptor.kind.label, descriptor.display_name, descriptor.match_label)

        self.console.print(table)
        self.console.print()
        self.console.print(f"Total resources: {plan.resource_count} in {len(plan)} tier(s)")
        self.console.print()

    def tier_header(self, tier: DeletionTier, total: int) -> None:
        self.console.print()
        self.console.print(f"[bold][{tier.number}/{total}] {tier.label}[/bold]")

    def outcome(self, outcome: DeletionOutcome) -> None:
        """Display a single deletion outcome."""
        symbol, style = STATUS_STYLES[outcome.status]
        descriptor = outcome.descriptor

        if outcome.status == DeletionStatus.DELETED:
            message = f"Deleted {descriptor.kind.label}: {descriptor.display_name}"
        elif outcome.status == DeletionStatus.NOT_FOUND:
            message = f"{descriptor.kind.label} {descriptor.display_name} already gone"
        elif outcome.status == DeletionStatus.TIMED_OUT:
            message = f"Timed out waiting for {descriptor.kind.label} {descriptor.display_name}: {outcome.detail}"
        else:
            message = f"Failed to delete {descriptor.kind.label} {descriptor.display_name}: {outcome.detail}"

        self.console.print(f"  {symbol} {message}", style=style, markup=False)

    def waiting(self, kind: ResourceKind, count: int) -> None:
        self.console.print(f"  ⏳ Waiting for {count} {kind.label} to finish deleting...", style="cyan")

    def summary(self, operation: ReapOperation, outcomes: List[DeletionOutcome]) -> None:
        """Display the per-kind summary table and overall counts."""
        counts: Dict[ResourceKind, Dict[DeletionStatus, int]] = {}
        for outcome in outcomes:
            by_status = counts.setdefault(outcome.descriptor.kind, {status: 0 for status in DeletionStatus})
            by_status[outcome.status] += 1

        self.console.print()
        if counts:
            table = Table(title="Summary", show_header=True, header_style="bold magenta")
            table.add_column("Kind", style="cyan")
            table.add_column("Deleted", justify="right", style="green")
            table.add_column("Not Found", justify="right", style="yellow")
            table.add_column("Failed", justify="right", style="red")
            table.add_column("Timed Out", justify="right", style="red")

            for kind in ResourceKind:
                if kind not in counts:
                    continue
                by_status = counts[kind]
                table.add_row(
                    kind.label,
                    str(by_status[DeletionStatus.DELETED]),
                    str(by_status[DeletionStatus.NOT_FOUND]),
                    str(by_status[DeletionStatus.FAILED]),
                    str(by_status[DeletionStatus.TIMED_OUT]),
                )

            self.console.print(table)
            self.console.print()

        self.console.print(f"Operation: {operation.operation_id} ({operation.status.value})")
        if operation.duration_seconds is not None:
            self.console.print(f"Duration: {operation.duration_seconds:.1f}s")

        problems = operation.failed_count + operation.timed_out_count
        if problems:
            self.console.print(f"✗ {problems} resource(s) could not be deleted", style="bold red")

    def completion(self) -> None:
        """Display the completion banner and follow-up reminders."""
        self.console.print()
        self.console.print(
            Panel(
                "[bold green]✓ Cleanup complete![/bold green]\n\n"
                "Next steps:\n"
                "  1. Verify in the AWS Console that the resources are gone\n"
                "  2. Check the billing dashboard again in 24 hours\n"
                "  3. Delete any resources with custom names by hand",
                style="green",
            )
        )
