"""
Raster cell types and uncompressed tile sizing.
"""

import math

import numpy as np


# One bit per cell, packed
BIT_CELL_TYPES = frozenset({"bool", "bit"})

SUPPORTED_CELL_TYPES = (
    "bool", "int8", "uint8", "int16", "uint16",
    "int32", "uint32", "int64", "uint64", "float32", "float64"
)


def cell_size_bits(cell_type: str) -> int:
    """Width of a single cell in bits."""
    name = cell_type.lower().strip()
    if name in BIT_CELL_TYPES:
        return 1
    if name not in SUPPORTED_CELL_TYPES:
        raise ValueError(
            f"Unsupported cell type: {cell_type}. "
            f"Expected one of {', '.join(SUPPORTED_CELL_TYPES)}"
        )
    return np.dtype(name).itemsize * 8


def estimate_tile_size_bytes(tile_cols: int, tile_rows: int, cell_type: str) -> int:
    """
    Uncompressed byte size of one tile.

    Args:
        tile_cols: Cells per tile row
        tile_rows: Cells per tile column
        cell_type: numpy dtype name, or ``bool``/``bit`` for packed bit rasters

    Returns:
        Size in bytes, rounded up for bit rasters
    """
    if tile_cols <= 0 or tile_rows <= 0:
        raise ValueError(
            f"Tile dimensions must be positive, got {tile_cols}x{tile_rows}"
        )
    return math.ceil(tile_cols * tile_rows * cell_size_bits(cell_type) / 8)
