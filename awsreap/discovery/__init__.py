"""Resource collectors that discover live resources by naming convention."""

from __future__ import annotations

from .base import BaseResourceCollector, match_pattern
from .cloudwatch_collector import CloudWatchCollector
from .ec2_collector import EC2Collector
from .iam_collector import IAMCollector
from .lambda_collector import LambdaCollector
from .rds_collector import RDSCollector
from .s3_collector import S3Collector

COLLECTOR_CLASSES = [
    LambdaCollector,
    CloudWatchCollector,
    EC2Collector,
    RDSCollector,
    S3Collector,
    IAMCollector,
]

__all__ = [
    "BaseResourceCollector",
    "COLLECTOR_CLASSES",
    "CloudWatchCollector",
    "EC2Collector",
    "IAMCollector",
    "LambdaCollector",
    "RDSCollector",
    "S3Collector",
    "match_pattern",
]
