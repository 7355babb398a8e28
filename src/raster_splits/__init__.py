"""
Raster Split Planner

Computes pre-split keys for bulk-loading tiled rasters into block-structured
storage. Partitions are aligned to whole tile rows and sized so that, with no
compression at all, a partition never exceeds one storage block.
"""

__version__ = "1.0.0"

# Core modules
from . import tiling
from . import splitting
from . import processing
from . import monitoring
from . import utils

__all__ = [
    "tiling",
    "splitting",
    "processing",
    "monitoring",
    "utils"
]
