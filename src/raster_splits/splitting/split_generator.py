"""
Split Generators

A split generator yields the tile keys at which a bulk-load should pre-split
the target table. :class:`RasterSplitGenerator` is the default strategy: it
cuts the tile extent into bands of whole rows sized by how many tiles fit in
one storage block.

The strategy assumes a storage block is large enough to hold at least one
full row of the extent. Wider extents are rejected with
:class:`SplitPreconditionError` when the increment is derived.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple, Union

from ..tiling.tile_extent import TileExtent
from ..tiling.tms_tiling import num_x_tiles, num_y_tiles, tile_id
from .increment import DISABLED, Increment, Rows, as_increment, compute_increment


class SplitGenerator(ABC):
    """Source of ordered split-point keys."""

    EMPTY: "SplitGenerator"

    @abstractmethod
    def get_splits(self) -> Tuple[int, ...]:
        """
        Split keys in ascending order.

        An empty tuple means the table should not be pre-split.
        """
        pass


class EmptySplitGenerator(SplitGenerator):
    """Generator for callers that do not want any pre-splitting."""

    def get_splits(self) -> Tuple[int, ...]:
        return ()

    def __repr__(self) -> str:
        return "EmptySplitGenerator()"


SplitGenerator.EMPTY = EmptySplitGenerator()


@dataclass(frozen=True)
class RasterSplitGenerator(SplitGenerator):
    """
    Row-band split strategy over a tile extent.

    Each split key is the key of the rightmost tile of the last row in a
    band. Under the row-major key layout that is the largest key of the
    band, so the split separates the band from every row below it.

    The extent must lie inside the zoom grid; that is checked here so
    ``get_splits`` never fails.
    """
    tile_extent: TileExtent
    zoom: int
    increment: Union[int, Increment] = DISABLED

    def __post_init__(self):
        # Accept legacy row counts; <= 0 means disabled
        object.__setattr__(self, "increment", as_increment(self.increment))

        extent = self.tile_extent
        if extent.xmax >= num_x_tiles(self.zoom) or extent.ymax >= num_y_tiles(self.zoom):
            raise ValueError(
                f"Tile extent {extent} does not fit the zoom {self.zoom} grid "
                f"({num_x_tiles(self.zoom)}x{num_y_tiles(self.zoom)} tiles)"
            )

    @classmethod
    def from_sizing(
        cls,
        tile_extent: TileExtent,
        zoom: int,
        tile_size_bytes: int,
        block_size_bytes: int
    ) -> "RasterSplitGenerator":
        """Build a generator whose bands fit one block of uncompressed tiles."""
        increment = compute_increment(tile_extent, tile_size_bytes, block_size_bytes)
        return cls(tile_extent=tile_extent, zoom=zoom, increment=increment)

    @property
    def enabled(self) -> bool:
        return isinstance(self.increment, Rows)

    def split_rows(self) -> range:
        """Rows that close a band, excluding the last row of the extent."""
        if not isinstance(self.increment, Rows):
            return range(0)

        step = self.increment.count
        # First split sits at the end of the first full band, not at ymin
        return range(self.tile_extent.ymin + (step - 1), self.tile_extent.ymax, step)

    def get_splits(self) -> Tuple[int, ...]:
        return tuple(
            tile_id(self.tile_extent.xmax, row, self.zoom)
            for row in self.split_rows()
        )
