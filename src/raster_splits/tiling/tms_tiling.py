"""
TMS Tiling Scheme

Grid math for the square Web Mercator tiling pyramid: tiles per axis at a
zoom level, the row-major linear tile key used as the storage sort key, and
conversion of geographic bounds into a tile index extent.

Rows are counted from the north edge of the grid, the same orientation web
map tile servers use. At zoom ``z`` the grid is ``2**z`` tiles on each axis
and the linear key of tile ``(x, y)`` is ``y * 2**z + x``, so keys sort by
row first and by column within a row.
"""

from functools import lru_cache
from typing import Tuple

from pyproj import Transformer

from .tile_extent import TileExtent


WGS84_EPSG = 4326
WEB_MERCATOR_EPSG = 3857

# Half the Web Mercator world width in meters
ORIGIN_SHIFT = 20037508.342789244

# Latitude where the Web Mercator square ends
MAX_LATITUDE = 85.0511287798066

MAX_ZOOM = 30


def _check_zoom(zoom: int) -> None:
    if not 0 <= zoom <= MAX_ZOOM:
        raise ValueError(f"Zoom level must be between 0 and {MAX_ZOOM}, got {zoom}")


def num_x_tiles(zoom: int) -> int:
    """Number of tile columns at a zoom level."""
    _check_zoom(zoom)
    return 1 << zoom


def num_y_tiles(zoom: int) -> int:
    """Number of tile rows at a zoom level."""
    _check_zoom(zoom)
    return 1 << zoom


def tile_id(tx: int, ty: int, zoom: int) -> int:
    """
    Linearize tile coordinates into a row-major key.

    Args:
        tx: Tile column
        ty: Tile row
        zoom: Zoom level

    Returns:
        Key that orders tiles by row, then by column
    """
    n = num_x_tiles(zoom)
    if not 0 <= tx < n:
        raise ValueError(f"Tile column {tx} is outside the zoom {zoom} grid (0..{n - 1})")
    if not 0 <= ty < num_y_tiles(zoom):
        raise ValueError(f"Tile row {ty} is outside the zoom {zoom} grid (0..{n - 1})")
    return ty * n + tx


def tile_xy(key: int, zoom: int) -> Tuple[int, int]:
    """Inverse of :func:`tile_id`."""
    n = num_x_tiles(zoom)
    if not 0 <= key < n * num_y_tiles(zoom):
        raise ValueError(f"Tile key {key} is outside the zoom {zoom} grid")
    ty, tx = divmod(key, n)
    return tx, ty


def extent_key_range(tile_extent: TileExtent, zoom: int) -> Tuple[int, int]:
    """Smallest and largest tile key inside an extent."""
    return (
        tile_id(tile_extent.xmin, tile_extent.ymin, zoom),
        tile_id(tile_extent.xmax, tile_extent.ymax, zoom)
    )


@lru_cache(maxsize=1)
def _wgs84_to_mercator() -> Transformer:
    return Transformer.from_crs(WGS84_EPSG, WEB_MERCATOR_EPSG, always_xy=True)


def lonlat_to_tile(lon: float, lat: float, zoom: int) -> Tuple[int, int]:
    """Tile column and row containing a WGS84 coordinate."""
    n = num_x_tiles(zoom)
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    lon = max(-180.0, min(180.0, lon))

    mx, my = _wgs84_to_mercator().transform(lon, lat)

    tile_span = 2 * ORIGIN_SHIFT / n
    tx = int((mx + ORIGIN_SHIFT) // tile_span)
    ty = int((ORIGIN_SHIFT - my) // tile_span)

    # Points on the east and south edges belong to the last column/row
    return min(max(tx, 0), n - 1), min(max(ty, 0), n - 1)


def extent_for_bounds(
    bbox: Tuple[float, float, float, float],
    zoom: int
) -> TileExtent:
    """
    Tile index extent covering a geographic bounding box.

    Args:
        bbox: (min_lon, min_lat, max_lon, max_lat) in degrees
        zoom: Zoom level

    Returns:
        Extent of every tile touching the box
    """
    min_lon, min_lat, max_lon, max_lat = bbox
    if min_lon > max_lon or min_lat > max_lat:
        raise ValueError(f"Invalid bounding box: {bbox}")

    xmin, ymin = lonlat_to_tile(min_lon, max_lat, zoom)
    xmax, ymax = lonlat_to_tile(max_lon, min_lat, zoom)
    return TileExtent(xmin=xmin, ymin=ymin, xmax=xmax, ymax=ymax)
