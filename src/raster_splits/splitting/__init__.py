"""
Splitting Module

Derives pre-split keys for bulk-loading tiles into block-structured storage,
so that each partition holds at most one storage block of uncompressed
tiles and partitions are aligned to whole tile rows.
"""

from .exceptions import SplitPreconditionError
from .increment import DISABLED, Disabled, Rows, Increment, as_increment, compute_increment
from .split_generator import SplitGenerator, EmptySplitGenerator, RasterSplitGenerator
from .split_plan import SplitPlan, PartitionBand
from .planner import SplitPlanner

__all__ = [
    "SplitPreconditionError",
    "DISABLED",
    "Disabled",
    "Rows",
    "Increment",
    "as_increment",
    "compute_increment",
    "SplitGenerator",
    "EmptySplitGenerator",
    "RasterSplitGenerator",
    "SplitPlan",
    "PartitionBand",
    "SplitPlanner"
]
