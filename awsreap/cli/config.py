"""Configuration loading for the reap CLI.

Precedence (lowest to highest): built-in defaults, YAML config file,
environment variables, command-line options.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..models.resource_descriptor import ResourceKind
from ..reaper.deleter import WaitSettings

logger = logging.getLogger(__name__)

DEFAULT_REGION = "eu-west-3"
DEFAULT_CONFIG_PATH = Path.home() / ".awsreap" / "config.yaml"
DEFAULT_AUDIT_DIR = Path.home() / ".awsreap" / "audit-logs"

# Naming conventions of the TaskManager/oppgavestyring course project
DEFAULT_MATCH_PATTERNS: Dict[ResourceKind, List[str]] = {
    ResourceKind.EVENT_RULE: ["task"],
    ResourceKind.LAMBDA_FUNCTION: ["task"],
    ResourceKind.LAMBDA_LAYER: ["pymysql", "task"],
    ResourceKind.LOG_GROUP: ["taskmanager", "/aws/lambda/task"],
    ResourceKind.DASHBOARD: ["TaskManager", "taskmanager"],
    ResourceKind.METRIC_ALARM: ["taskmanager"],
    ResourceKind.EC2_INSTANCE: ["task"],
    ResourceKind.DB_INSTANCE: ["task", "oppgave"],
    ResourceKind.DB_SUBNET_GROUP: ["task", "oppgave"],
    ResourceKind.S3_BUCKET: ["oppgavestyring", "taskmanager", "task-"],
    ResourceKind.SECURITY_GROUP: ["task", "oppgave"],
    ResourceKind.INTERNET_GATEWAY: ["task", "oppgave"],
    ResourceKind.SUBNET: ["task", "oppgave"],
    ResourceKind.ROUTE_TABLE: ["task", "oppgave"],
    ResourceKind.VPC: ["Oppgave", "Task"],
    ResourceKind.IAM_ROLE: ["task"],
    ResourceKind.KEY_PAIR: ["task"],
}


class ConfigurationError(Exception):
    """Invalid configuration or command-line input. Aborts before any deletion."""


@dataclass
class Config:
    """Reaper configuration.

    Attributes:
        region: AWS region to clean up
        aws_profile: Named credential profile (None uses ambient credentials)
        log_level: Root log level
        audit_dir: Directory for YAML audit logs (None disables auditing)
        max_retries: Attempts per deletion before recording a failure
        security_group_grace_seconds: Pause before mutating security groups
        instance_wait: Bounds for the instance-terminated waiter
        db_wait: Bounds for the db-instance-deleted waiter
        match_patterns: Name/tag patterns per resource kind
    """

    region: str = DEFAULT_REGION
    aws_profile: Optional[str] = None
    log_level: str = "INFO"
    audit_dir: Optional[str] = str(DEFAULT_AUDIT_DIR)
    max_retries: int = 3
    security_group_grace_seconds: float = 10.0
    instance_wait: WaitSettings = field(default_factory=lambda: WaitSettings(delay=15, max_attempts=40))
    db_wait: WaitSettings = field(default_factory=lambda: WaitSettings(delay=30, max_attempts=60))
    match_patterns: Dict[ResourceKind, List[str]] = field(
        default_factory=lambda: {kind: list(patterns) for kind, patterns in DEFAULT_MATCH_PATTERNS.items()}
    )

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load configuration from file and environment.

        Args:
            path: Explicit config file (defaults to $AWSREAP_CONFIG, then ~/.awsreap/config.yaml)

        Returns:
            Config instance

        Raises:
            ConfigurationError: If the file is unreadable or holds invalid values
        """
        config = cls()

        explicit = path or os.environ.get("AWSREAP_CONFIG")
        config_path = Path(explicit).expanduser() if explicit else DEFAULT_CONFIG_PATH

        if config_path.exists():
            config._apply_file(config_path)
        elif explicit:
            raise ConfigurationError(f"Config file not found: {config_path}")

        config._apply_env()
        return config

    def _apply_file(self, config_path: Path) -> None:
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        logger.debug(f"Loaded configuration from {config_path}")
        self.apply(data)

    def apply(self, data: Dict[str, Any]) -> None:
        """Apply a mapping of settings (as found in the YAML file)."""
        if "region" in data:
            self.region = str(data["region"])
        if "aws_profile" in data or "profile" in data:
            profile = data.get("aws_profile", data.get("profile"))
            self.aws_profile = str(profile) if profile else None
        if "log_level" in data:
            self.log_level = str(data["log_level"]).upper()
        if "audit_dir" in data:
            self.audit_dir = str(data["audit_dir"]) if data["audit_dir"] else None

        try:
            if "max_retries" in data:
                self.max_retries = int(data["max_retries"])
            if "security_group_grace_seconds" in data:
                self.security_group_grace_seconds = float(data["security_group_grace_seconds"])
            if "instance_wait" in data:
                self.instance_wait = self._parse_wait(data["instance_wait"], self.instance_wait)
            if "db_wait" in data:
                self.db_wait = self._parse_wait(data["db_wait"], self.db_wait)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        if self.max_retries < 1:
            raise ConfigurationError("max_retries must be at least 1")

        if "match_patterns" in data:
            self.match_patterns.update(self._parse_patterns(data["match_patterns"]))

    def _apply_env(self) -> None:
        if os.environ.get("AWSREAP_REGION"):
            self.region = os.environ["AWSREAP_REGION"]
        if os.environ.get("AWSREAP_PROFILE"):
            self.aws_profile = os.environ["AWSREAP_PROFILE"]
        if os.environ.get("AWSREAP_LOG_LEVEL"):
            self.log_level = os.environ["AWSREAP_LOG_LEVEL"].upper()
        if os.environ.get("AWSREAP_AUDIT_DIR"):
            self.audit_dir = os.environ["AWSREAP_AUDIT_DIR"]

    @staticmethod
    def _parse_wait(value: Any, current: WaitSettings) -> WaitSettings:
        if not isinstance(value, dict):
            raise ValueError(f"wait settings must be a mapping, got {value!r}")
        settings = WaitSettings(
            delay=int(value.get("delay", current.delay)),
            max_attempts=int(value.get("max_attempts", current.max_attempts)),
        )
        if settings.delay < 1 or settings.max_attempts < 1:
            raise ValueError("wait delay and max_attempts must be positive")
        return settings

    @staticmethod
    def _parse_patterns(value: Any) -> Dict[ResourceKind, List[str]]:
        if not isinstance(value, dict):
            raise ConfigurationError("match_patterns must map resource kinds to pattern lists")

        patterns: Dict[ResourceKind, List[str]] = {}
        for kind_name, kind_patterns in value.items():
            try:
                kind = ResourceKind.from_value(str(kind_name))
            except ValueError as e:
                raise ConfigurationError(str(e)) from e

            if isinstance(kind_patterns, str):
                kind_patterns = [kind_patterns]
            if not isinstance(kind_patterns, list) or not all(isinstance(p, str) and p for p in kind_patterns):
                raise ConfigurationError(f"Patterns for {kind.value} must be a list of non-empty strings")
            patterns[kind] = list(kind_patterns)

        return patterns
