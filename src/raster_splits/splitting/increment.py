"""
Row Increment Derivation

Works out how many whole tile rows fit in one storage block. Tiles are
assumed not to compress at all, so every rounding step goes down and a
partition never holds more tile bytes than a block.
"""

from dataclasses import dataclass
from typing import Union

from ..tiling.tile_extent import TileExtent
from .exceptions import SplitPreconditionError


class Disabled:
    """Splitting is turned off; generators yield no split keys."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DISABLED"

    def __reduce__(self):
        return (Disabled, ())


DISABLED = Disabled()


@dataclass(frozen=True)
class Rows:
    """Number of tile rows assigned to each partition."""
    count: int

    def __post_init__(self):
        if self.count <= 0:
            raise ValueError(f"Row increment must be positive, got {self.count}")


Increment = Union[Disabled, Rows]


def as_increment(value: Union[int, Increment]) -> Increment:
    """
    Normalise a plain row count into an :data:`Increment`.

    Counts of zero or below mean "no splitting".
    """
    if isinstance(value, (Disabled, Rows)):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Increment must be an int, Rows or DISABLED, got {value!r}")
    return Rows(value) if value > 0 else DISABLED


def compute_increment(
    tile_extent: TileExtent,
    tile_size_bytes: int,
    block_size_bytes: int
) -> Increment:
    """
    Derive the rows-per-partition increment for an extent.

    Args:
        tile_extent: Extent being loaded
        tile_size_bytes: Uncompressed size of one tile
        block_size_bytes: Storage block size; zero or below disables splitting

    Returns:
        ``Rows(n)`` or ``DISABLED`` when no split is needed

    Raises:
        SplitPreconditionError: A full row of tiles does not fit in one block
    """
    if tile_size_bytes <= 0:
        raise ValueError(f"Tile size must be positive, got {tile_size_bytes}")

    if block_size_bytes <= 0:
        return DISABLED

    tiles_per_block = block_size_bytes // tile_size_bytes

    if tile_extent.width > tiles_per_block:
        raise SplitPreconditionError(tile_extent.width, tiles_per_block)

    if tiles_per_block >= tile_extent.tile_count:
        return DISABLED

    return Rows(tiles_per_block // tile_extent.width)
