"""Main CLI entry point using Typer."""

import logging
import sys
from datetime import datetime
from typing import List, Optional

import typer
from botocore.exceptions import ProfileNotFound
from rich.console import Console

from ..aws.client import create_session, known_regions
from ..aws.credentials import CredentialValidationError, validate_credentials
from ..models.deletion_outcome import DeletionOutcome
from ..reaper.audit import AuditStorage
from ..reaper.deleter import ResourceDeleter
from ..reaper.discovery import ResourceDiscoverer
from ..reaper.reaper import ResourceReaper
from ..reaper.reporter import ReapReporter
from ..utils.logging import setup_logging
from .config import Config, ConfigurationError

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="reap",
    help="AWS Free Tier Reaper - delete a project's AWS resources in dependency order",
    add_completion=False,
)

# Create Rich console for output
console = Console()


def version_callback(value: bool):
    if value:
        import boto3

        from .. import __version__

        console.print(f"aws-free-tier-reaper version {__version__}")
        console.print(f"Python {sys.version.split()[0]}")
        console.print(f"boto3 {boto3.__version__}")
        raise typer.Exit()


def check_region(session, region: str) -> None:
    """Reject region names botocore has never heard of.

    Raises:
        ConfigurationError: If the region is unknown
    """
    regions = known_regions(session)
    if regions and region not in regions:
        raise ConfigurationError(f"Unknown region '{region}'")


def build_reaper(session, config: Config, account_id: Optional[str]) -> ResourceReaper:
    """Wire discoverer, deleter and audit storage for one run."""
    deleter = ResourceDeleter(
        region=config.region,
        aws_profile=config.aws_profile,
        max_retries=config.max_retries,
        instance_wait=config.instance_wait,
        db_wait=config.db_wait,
        session=session,
    )
    audit_storage = None
    if config.audit_dir:
        try:
            audit_storage = AuditStorage(storage_dir=config.audit_dir)
        except OSError as e:
            logger.warning(f"Audit logging disabled, cannot use {config.audit_dir}: {e}")

    return ResourceReaper(
        discoverer=ResourceDiscoverer(session, config.region),
        deleter=deleter,
        audit_storage=audit_storage,
        region=config.region,
        aws_profile=config.aws_profile,
        account_id=account_id,
        security_group_grace_seconds=config.security_group_grace_seconds,
    )


@app.command()
def reap(
    region: Optional[str] = typer.Option(None, "--region", "-r", help="AWS region to clean up (default: eu-west-3)"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="AWS profile name"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the deletion plan without deleting anything"),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Config file (default: $AWSREAP_CONFIG or ~/.awsreap/config.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show version information and exit"
    ),
):
    """Delete every project resource in a region, dependents before their dependencies.

    Matching resources are found by name or Name tag. Nothing is deleted until
    you type 'yes' at the prompt.
    """
    try:
        config = Config.load(config_path)

        # Override with CLI options
        if region:
            config.region = region
        if profile:
            config.aws_profile = profile

        setup_logging(level="DEBUG" if verbose else config.log_level, verbose=verbose)

        session = create_session(profile_name=config.aws_profile, region_name=config.region)
        check_region(session, config.region)

        account_id = None
        try:
            identity = validate_credentials(config.aws_profile, config.region, session=session)
            account_id = identity["account_id"]
        except CredentialValidationError as e:
            logger.warning(f"Could not resolve account: {e}")

        reporter = ReapReporter(console)
        reporter.header(config.region, config.aws_profile, account_id)
        reaper = build_reaper(session, config, account_id)

        if dry_run:
            console.print("🔍 Dry run: discovering resources, nothing will be deleted\n")
            plan, _ = reaper.preview(config.match_patterns)
            reporter.display_plan(plan)
            raise typer.Exit(code=0)

        reporter.warning(config.match_patterns)
        try:
            answer = typer.prompt("Type 'yes' to continue", default="", show_default=False)
        except typer.Abort:
            console.print("\n✗ Aborted", style="bold red")
            raise typer.Exit(code=1)

        if answer != "yes":
            console.print("Cleanup cancelled.", style="yellow")
            raise typer.Exit(code=0)

        console.print("\n🔍 Discovering resources...\n")
        found = reaper.discover_all(config.match_patterns)
        reporter.discovery_summary(found)
        plan = reaper.plan(descriptor for descriptors in found.values() for descriptor in descriptors)

        started_at = datetime.utcnow()
        outcomes: List[DeletionOutcome] = []
        for outcome in reaper.execute(
            plan,
            confirmed=True,
            on_tier_start=lambda tier: reporter.tier_header(tier, len(plan)),
            on_wait=reporter.waiting,
        ):
            reporter.outcome(outcome)
            outcomes.append(outcome)

        operation = reaper.summarize(plan, outcomes, started_at)
        audit_file = reaper.record(operation, outcomes)

        reporter.summary(operation, outcomes)
        if audit_file:
            console.print(f"Audit log: [cyan]{audit_file}[/cyan]")
        reporter.completion()

    except typer.Exit:
        raise
    except ConfigurationError as e:
        console.print(f"✗ Configuration error: {e}", style="bold red")
        raise typer.Exit(code=2)
    except ProfileNotFound as e:
        console.print(f"✗ {e}", style="bold red")
        raise typer.Exit(code=2)


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    cli_main()
