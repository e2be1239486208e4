"""S3 bucket collector."""

from __future__ import annotations

from typing import Any, List, Set, Tuple

from ..models.resource_descriptor import ResourceDescriptor, ResourceKind
from .base import BaseResourceCollector, match_pattern


class S3Collector(BaseResourceCollector):
    """Collector for S3 buckets.

    Bucket listing is global, so matching buckets in every region are
    collected. Each descriptor records the bucket's region so deletion can use
    a client for the right endpoint.
    """

    @property
    def service_name(self) -> str:
        return "s3"

    @property
    def supported_kinds(self) -> Tuple[ResourceKind, ...]:
        return (ResourceKind.S3_BUCKET,)

    def collect(self, kind: ResourceKind, patterns: List[str]) -> Set[ResourceDescriptor]:
        if kind != ResourceKind.S3_BUCKET:
            raise self._unsupported(kind)

        client = self._create_client()
        descriptors = set()
        for bucket in client.list_buckets().get("Buckets", []):
            name = bucket["Name"]
            label = match_pattern(name, patterns)
            if label:
                descriptors.add(
                    ResourceDescriptor(
                        kind=ResourceKind.S3_BUCKET,
                        identifier=name,
                        match_label=label,
                        attributes={"region": self._bucket_region(client, name)},
                    )
                )

        self.logger.debug(f"Collected {len(descriptors)} S3 buckets")
        return descriptors

    def _bucket_region(self, client: Any, bucket: str) -> str:
        try:
            location = client.get_bucket_location(Bucket=bucket).get("LocationConstraint")
        except Exception as e:
            self.logger.debug(f"Could not get location for bucket {bucket}: {e}")
            return self.region
        # us-east-1 buckets report no location constraint
        return location or "us-east-1"
