"""
Command-line interface for split planning.

Usage:
    raster-splits plan --xmin 0 --ymin 0 --xmax 9 --ymax 99999 --zoom 17 \
        --tile-size-bytes 1000 --block-size-bytes 64000000
    raster-splits plan --bounds -10 35 5 45 --zoom 12 --pyramid
    raster-splits --help
"""

import argparse
import json
import sys
from typing import List, Optional

import structlog

from .splitting.exceptions import SplitPreconditionError
from .splitting.planner import SplitPlanner
from .tiling.cell_types import estimate_tile_size_bytes
from .tiling.tile_extent import TileExtent
from .tiling.tms_tiling import extent_for_bounds
from .utils.config import Config
from .utils.logging_config import configure_logging


EXIT_PRECONDITION_FAILED = 2


def setup_argparse() -> argparse.ArgumentParser:
    """Set up argument parser."""
    parser = argparse.ArgumentParser(
        prog="raster-splits",
        description="Compute storage pre-split keys for tiled raster bulk-loads",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    plan_parser = subparsers.add_parser("plan", help="Print the split plan as JSON")

    extent_group = plan_parser.add_argument_group("tile extent")
    extent_group.add_argument("--xmin", type=int)
    extent_group.add_argument("--ymin", type=int)
    extent_group.add_argument("--xmax", type=int)
    extent_group.add_argument("--ymax", type=int)
    extent_group.add_argument(
        "--bounds",
        type=float,
        nargs=4,
        metavar=("MIN_LON", "MIN_LAT", "MAX_LON", "MAX_LAT"),
        help="Derive the extent from WGS84 bounds instead of tile indices",
    )
    plan_parser.add_argument("--zoom", type=int, required=True)

    sizing_group = plan_parser.add_argument_group("sizing")
    sizing_group.add_argument("--tile-size-bytes", type=int, help="Uncompressed tile size")
    sizing_group.add_argument("--tile-cols", type=int, help="Cells per tile row")
    sizing_group.add_argument("--tile-rows", type=int, help="Cells per tile column")
    sizing_group.add_argument("--cell-type", help="Cell type, e.g. float32, uint8, bool")
    sizing_group.add_argument("--block-size-bytes", type=int, help="Storage block size")

    plan_parser.add_argument(
        "--pyramid",
        action="store_true",
        help="Plan every level from --zoom up to zoom 0",
    )
    plan_parser.add_argument("--indent", type=int, default=2)

    return parser


def _resolve_extent(args: argparse.Namespace, parser: argparse.ArgumentParser) -> TileExtent:
    if args.bounds:
        return extent_for_bounds(tuple(args.bounds), args.zoom)

    coords = (args.xmin, args.ymin, args.xmax, args.ymax)
    if any(value is None for value in coords):
        parser.error("either --bounds or all of --xmin --ymin --xmax --ymax are required")

    return TileExtent(xmin=args.xmin, ymin=args.ymin, xmax=args.xmax, ymax=args.ymax)


def _build_config(args: argparse.Namespace) -> Config:
    config = Config.from_yaml(args.config) if args.config else Config.from_env()

    if args.log_level:
        config.log_level = args.log_level
    if getattr(args, "block_size_bytes", None) is not None:
        config.storage.block_size_bytes = args.block_size_bytes
    if getattr(args, "tile_cols", None) is not None:
        config.tiles.tile_cols = args.tile_cols
    if getattr(args, "tile_rows", None) is not None:
        config.tiles.tile_rows = args.tile_rows
    if getattr(args, "cell_type", None) is not None:
        config.tiles.cell_type = args.cell_type

    # Metrics are not scraped from a one-shot command
    config.monitoring.enable_prometheus = False
    return config


def cmd_plan(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    """Compute and print a split plan."""
    config = _build_config(args)
    configure_logging(config.log_level, json_output=config.environment != "development")
    logger = structlog.get_logger(component="cli")

    try:
        tile_extent = _resolve_extent(args, parser)
        tile_size_bytes = args.tile_size_bytes
        if tile_size_bytes is None:
            tiles = config.tiles
            tile_size_bytes = estimate_tile_size_bytes(tiles.tile_cols, tiles.tile_rows, tiles.cell_type)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    planner = SplitPlanner(config)

    try:
        if args.pyramid:
            plans = planner.plan_pyramid(tile_extent, args.zoom, tile_size_bytes)
            output = {
                'tile_extent': _extent_dict(tile_extent),
                'block_size_bytes': config.storage.block_size_bytes,
                'levels': {str(zoom): plan.to_dict() for zoom, plan in plans.items()}
            }
        else:
            plan = planner.plan(tile_extent, args.zoom, tile_size_bytes)
            output = {
                'tile_extent': _extent_dict(tile_extent),
                'block_size_bytes': config.storage.block_size_bytes,
                **plan.to_dict()
            }
    except SplitPreconditionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_PRECONDITION_FAILED
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=args.indent))
    logger.debug("Plan written", zoom=args.zoom, pyramid=args.pyramid)
    return 0


def _extent_dict(tile_extent: TileExtent) -> dict:
    return {
        'xmin': tile_extent.xmin,
        'ymin': tile_extent.ymin,
        'xmax': tile_extent.xmax,
        'ymax': tile_extent.ymax,
        'width': tile_extent.width,
        'height': tile_extent.height
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = setup_argparse()
    args = parser.parse_args(argv)

    if args.command == "plan":
        return cmd_plan(args, parser)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
