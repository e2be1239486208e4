"""Deletion plan model.

Ordered tiers of resources, each tier safe to delete in any order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Optional

from .resource_descriptor import ResourceDescriptor, ResourceKind


@dataclass(frozen=True)
class DeletionTier:
    """A batch of resources with no deletion-order dependency among them.

    Attributes:
        number: 1-based position in the plan
        descriptors: Resources in this tier
    """

    number: int
    descriptors: FrozenSet[ResourceDescriptor]

    @property
    def kinds(self) -> List[ResourceKind]:
        """Resource kinds present in this tier, in declaration order."""
        present = {d.kind for d in self.descriptors}
        return [kind for kind in ResourceKind if kind in present]

    @property
    def label(self) -> str:
        return ", ".join(kind.label for kind in self.kinds)

    def ordered(self) -> List[ResourceDescriptor]:
        """Descriptors sorted for deterministic execution and display."""
        return sorted(self.descriptors, key=lambda d: (list(ResourceKind).index(d.kind), d.identifier))

    def __len__(self) -> int:
        return len(self.descriptors)


@dataclass
class DeletionPlan:
    """Deletion plan entity.

    Tiers are strictly ordered: a resource in tier N+1 may depend on resources
    in tier N or earlier, never the other way around.
    """

    tiers: List[DeletionTier] = field(default_factory=list)

    def __iter__(self) -> Iterator[DeletionTier]:
        return iter(self.tiers)

    def __len__(self) -> int:
        return len(self.tiers)

    @property
    def is_empty(self) -> bool:
        return not self.tiers

    @property
    def resource_count(self) -> int:
        return sum(len(tier) for tier in self.tiers)

    @property
    def descriptors(self) -> List[ResourceDescriptor]:
        """All descriptors in execution order."""
        return [descriptor for tier in self.tiers for descriptor in tier.ordered()]

    def tier_of(self, descriptor: ResourceDescriptor) -> Optional[int]:
        """Tier number containing the descriptor, or None if not planned."""
        for tier in self.tiers:
            if descriptor in tier.descriptors:
                return tier.number
        return None

    def count_by_kind(self) -> Dict[ResourceKind, int]:
        counts: Dict[ResourceKind, int] = {}
        for descriptor in self.descriptors:
            counts[descriptor.kind] = counts.get(descriptor.kind, 0) + 1
        return counts
