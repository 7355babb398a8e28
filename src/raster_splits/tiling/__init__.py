"""
Tiling Module

Tile index extents, the row-major TMS key layout and tile sizing helpers
used to plan storage splits.
"""

from .tile_extent import TileExtent
from .tms_tiling import (
    tile_id,
    tile_xy,
    num_x_tiles,
    num_y_tiles,
    extent_key_range,
    extent_for_bounds,
    lonlat_to_tile
)
from .cell_types import estimate_tile_size_bytes, cell_size_bits

__all__ = [
    "TileExtent",
    "tile_id",
    "tile_xy",
    "num_x_tiles",
    "num_y_tiles",
    "extent_key_range",
    "extent_for_bounds",
    "lonlat_to_tile",
    "estimate_tile_size_bytes",
    "cell_size_bits"
]
