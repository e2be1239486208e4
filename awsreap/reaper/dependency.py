"""Dependency graph construction and deletion ordering."""

from __future__ import annotations

from typing import Dict, List, Set


class DependencyResolver:
    """Dependency graph for deletion ordering.

    Edges point from a child to the parents it blocks: a child must be deleted
    before any of its parents (a subnet before its VPC, an instance before its
    security group). Tiers are computed with Kahn's algorithm.

    Attributes:
        graph: Mapping of resource key -> list of parent keys
    """

    def __init__(self) -> None:
        self.graph: Dict[str, List[str]] = {}

    def add_dependency(self, parent: str, child: str) -> None:
        """Record that child must be deleted before parent."""
        self.graph.setdefault(parent, [])
        parents = self.graph.setdefault(child, [])
        if parent not in parents:
            parents.append(parent)

    def get_deletion_tiers(self, resources: List[str]) -> Dict[int, List[str]]:
        """Group resources into tiers that can be deleted in order.

        Tier 1 holds resources nothing else must wait for; tier N+1 holds
        resources whose blocking children are all in tiers 1..N.

        Args:
            resources: Resource keys to order

        Returns:
            Mapping of tier number (1-based) -> sorted resource keys

        Raises:
            ValueError: If the dependency graph restricted to resources has a cycle
        """
        remaining = set(resources)
        blockers: Dict[str, Set[str]] = {resource: set() for resource in remaining}
        for child, parents in self.graph.items():
            if child not in remaining:
                continue
            for parent in parents:
                if parent in remaining:
                    blockers[parent].add(child)

        tiers: Dict[int, List[str]] = {}
        tier = 1
        while remaining:
            ready = sorted(resource for resource in remaining if not blockers[resource] & remaining)
            if not ready:
                raise ValueError(f"Circular dependency detected among: {', '.join(sorted(remaining))}")
            tiers[tier] = ready
            remaining.difference_update(ready)
            tier += 1

        return tiers

    def has_cycle(self) -> bool:
        """Check the whole graph for circular dependencies."""
        visiting: Set[str] = set()
        done: Set[str] = set()

        def visit(node: str) -> bool:
            if node in done:
                return False
            if node in visiting:
                return True
            visiting.add(node)
            if any(visit(parent) for parent in self.graph.get(node, [])):
                return True
            visiting.discard(node)
            done.add(node)
            return False

        return any(visit(node) for node in list(self.graph))
