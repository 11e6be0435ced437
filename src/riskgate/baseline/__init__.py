"""Baseline - historical transfer amount baseline from daily event log partitions."""

from riskgate.baseline.calculator import BaselineCalculator, parse_transfer_amount
from riskgate.baseline.partitions import (
    LocalPartitionSource,
    PartitionSource,
    S3PartitionSource,
    partition_name,
)

__all__ = [
    "BaselineCalculator",
    "parse_transfer_amount",
    "LocalPartitionSource",
    "PartitionSource",
    "S3PartitionSource",
    "partition_name",
]
