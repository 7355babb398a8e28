"""
Tile Index Extent

Immutable rectangle of integer tile coordinates at a single zoom level.
Bounds are inclusive on both axes.
"""

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class TileExtent:
    """Inclusive tile-index rectangle [xmin, xmax] x [ymin, ymax]."""
    xmin: int
    ymin: int
    xmax: int
    ymax: int

    def __post_init__(self):
        if min(self.xmin, self.ymin) < 0:
            raise ValueError(
                f"Tile coordinates must be non-negative, got "
                f"xmin={self.xmin}, ymin={self.ymin}"
            )
        if self.xmin > self.xmax:
            raise ValueError(f"xmin={self.xmin} is greater than xmax={self.xmax}")
        if self.ymin > self.ymax:
            raise ValueError(f"ymin={self.ymin} is greater than ymax={self.ymax}")

    @property
    def width(self) -> int:
        return self.xmax - self.xmin + 1

    @property
    def height(self) -> int:
        return self.ymax - self.ymin + 1

    @property
    def tile_count(self) -> int:
        return self.width * self.height

    def contains(self, x: int, y: int) -> bool:
        return self.xmin <= x <= self.xmax and self.ymin <= y <= self.ymax

    def rows(self) -> Iterator[int]:
        """Iterate row indices from ymin to ymax."""
        return iter(range(self.ymin, self.ymax + 1))

    def zoom_out(self) -> "TileExtent":
        """Extent covering the same area one zoom level up."""
        return TileExtent(
            xmin=self.xmin // 2,
            ymin=self.ymin // 2,
            xmax=self.xmax // 2,
            ymax=self.ymax // 2
        )

    def __str__(self) -> str:
        return f"TileExtent({self.xmin}, {self.ymin}, {self.xmax}, {self.ymax})"
