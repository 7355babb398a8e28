"""
Split Plan

Describes the partitions a split generator produces: which rows each band
covers, its key range and its worst-case (uncompressed) size. Used for
reporting and for checking a plan against the storage block size before a
bulk-load is started.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from ..tiling.tms_tiling import tile_id
from .increment import Rows
from .split_generator import RasterSplitGenerator


@dataclass(frozen=True)
class PartitionBand:
    """One partition of whole tile rows."""
    index: int
    start_row: int
    end_row: int
    start_key: int
    end_key: int
    tile_count: int
    worst_case_bytes: int

    @property
    def row_count(self) -> int:
        return self.end_row - self.start_row + 1


@dataclass(frozen=True)
class SplitPlan:
    """Split keys and the row bands they delimit for one zoom level."""
    zoom: int
    tile_size_bytes: int
    increment_rows: Optional[int]
    splits: Tuple[int, ...]
    bands: Tuple[PartitionBand, ...]

    @classmethod
    def from_generator(
        cls,
        generator: RasterSplitGenerator,
        tile_size_bytes: int
    ) -> "SplitPlan":
        """
        Build the plan for a raster split generator.

        Args:
            generator: Generator to describe
            tile_size_bytes: Uncompressed size of one tile

        Returns:
            Plan with one band per partition; a disabled generator gives a
            single band covering the whole extent
        """
        extent = generator.tile_extent
        zoom = generator.zoom
        splits = generator.get_splits()

        band_ends = list(generator.split_rows()) + [extent.ymax]
        bands: List[PartitionBand] = []
        start_row = extent.ymin
        for index, end_row in enumerate(band_ends):
            tile_count = (end_row - start_row + 1) * extent.width
            bands.append(PartitionBand(
                index=index,
                start_row=start_row,
                end_row=end_row,
                start_key=tile_id(extent.xmin, start_row, zoom),
                end_key=tile_id(extent.xmax, end_row, zoom),
                tile_count=tile_count,
                worst_case_bytes=tile_count * tile_size_bytes
            ))
            start_row = end_row + 1

        increment = generator.increment
        return cls(
            zoom=zoom,
            tile_size_bytes=tile_size_bytes,
            increment_rows=increment.count if isinstance(increment, Rows) else None,
            splits=splits,
            bands=tuple(bands)
        )

    @property
    def partition_count(self) -> int:
        return len(self.bands)

    @property
    def split_count(self) -> int:
        return len(self.splits)

    @property
    def max_partition_bytes(self) -> int:
        return max(band.worst_case_bytes for band in self.bands)

    def fits_block(self, block_size_bytes: int) -> bool:
        """Whether every partition fits in a block, uncompressed."""
        return self.max_partition_bytes <= block_size_bytes

    def to_dataframe(self) -> pd.DataFrame:
        """One row per partition band."""
        columns = [
            'index', 'start_row', 'end_row', 'start_key',
            'end_key', 'tile_count', 'worst_case_bytes'
        ]
        df = pd.DataFrame([asdict(band) for band in self.bands], columns=columns)
        df['row_count'] = df['end_row'] - df['start_row'] + 1
        return df.set_index('index')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'zoom': self.zoom,
            'tile_size_bytes': self.tile_size_bytes,
            'increment_rows': self.increment_rows,
            'split_count': self.split_count,
            'partition_count': self.partition_count,
            'max_partition_bytes': self.max_partition_bytes,
            'splits': list(self.splits),
            'bands': [asdict(band) for band in self.bands]
        }
