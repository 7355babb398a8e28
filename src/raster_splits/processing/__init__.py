"""
Processing Module

Spark integration: keys tile DataFrames and partitions them along split
keys before a bulk-load.
"""

from .spark_partitioner import SparkSplitPartitioner, partition_index

__all__ = [
    "SparkSplitPartitioner",
    "partition_index"
]
