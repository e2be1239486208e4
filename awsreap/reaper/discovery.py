"""Resource discovery across collectors."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set, Type

from ..discovery import COLLECTOR_CLASSES, BaseResourceCollector
from ..models.resource_descriptor import ResourceDescriptor, ResourceKind

logger = logging.getLogger(__name__)


class ResourceDiscoverer:
    """Routes discovery requests to the collector owning each resource kind.

    A failed discovery query is treated as "nothing found": the reaper
    completes a partial cleanup rather than aborting the run.
    """

    def __init__(
        self,
        session: Any,
        region: str,
        collector_classes: Optional[List[Type[BaseResourceCollector]]] = None,
    ) -> None:
        """Initialize the discoverer.

        Args:
            session: boto3 Session shared by all collectors
            region: AWS region to query
            collector_classes: Collector classes to use (default: all)
        """
        self.region = region
        self.collectors: Dict[ResourceKind, BaseResourceCollector] = {}
        for collector_class in collector_classes or COLLECTOR_CLASSES:
            collector = collector_class(session, region)
            for kind in collector.supported_kinds:
                self.collectors[kind] = collector

    def discover(self, kind: ResourceKind, patterns: List[str]) -> Set[ResourceDescriptor]:
        """Discover resources of a kind matching any pattern.

        Args:
            kind: Resource kind
            patterns: Name/tag substring patterns

        Returns:
            Matching descriptors; empty when nothing matches or the query fails
        """
        if not patterns:
            return set()

        collector = self.collectors.get(kind)
        if collector is None:
            logger.warning(f"No collector registered for {kind.value}")
            return set()

        try:
            found = collector.collect(kind, patterns)
        except Exception as e:
            logger.warning(f"Discovery of {kind.label} failed, treating as nothing found: {e}")
            return set()

        logger.debug(f"Discovered {len(found)} {kind.label} matching {patterns}")
        return found

    def discover_all(self, match_patterns: Dict[ResourceKind, List[str]]) -> Dict[ResourceKind, Set[ResourceDescriptor]]:
        """Discover every kind in the pattern map, in deletion-precedence order.

        Returns:
            Mapping of kind -> discovered descriptors (possibly empty)
        """
        return {kind: self.discover(kind, match_patterns[kind]) for kind in ResourceKind if kind in match_patterns}
