"""Dependency-ordered resource deletion."""

from .audit import AuditStorage
from .deleter import ResourceDeleter, WaitSettings
from .dependency import DependencyResolver
from .discovery import ResourceDiscoverer
from .planner import DELETION_STAGES, build_deletion_plan, merge_descriptors
from .reaper import ResourceReaper
from .reporter import ReapReporter

__all__ = [
    "AuditStorage",
    "DELETION_STAGES",
    "DependencyResolver",
    "ReapReporter",
    "ResourceDeleter",
    "ResourceDiscoverer",
    "ResourceReaper",
    "WaitSettings",
    "build_deletion_plan",
    "merge_descriptors",
]
