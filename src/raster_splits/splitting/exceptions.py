"""Errors raised while planning storage splits."""


class SplitPreconditionError(ValueError):
    """
    A single row of tiles does not fit in one storage block.

    Row-aligned splitting cannot honour the block size in this case. The
    caller has to change the tile or block sizing; retrying will not help.
    """

    def __init__(self, extent_width: int, tiles_per_block: int):
        self.extent_width = extent_width
        self.tiles_per_block = tiles_per_block
        super().__init__(
            f"RasterSplitGenerator cannot handle the case where "
            f"tile extent width={extent_width} is more than "
            f"tilesPerBlock={tiles_per_block}"
        )
