"""
Split Planner

Turns an ingest request (tile extent, zoom level and sizing) into a
:class:`RasterSplitGenerator` and the :class:`SplitPlan` it produces, using
the block size and tile layout from configuration. Also plans every level of
a pyramid, from the base zoom up to zoom 0.
"""

import time
from typing import Dict, Any, Optional

import structlog

from ..utils.config import Config
from ..monitoring.metrics import MetricsCollector
from ..tiling.tile_extent import TileExtent
from ..tiling.cell_types import estimate_tile_size_bytes
from .exceptions import SplitPreconditionError
from .split_generator import RasterSplitGenerator
from .split_plan import SplitPlan


class SplitPlanner:
    """
    Configured entry point for split planning.

    Stateless apart from counters; a single planner can be shared across
    threads.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        metrics_collector: Optional[MetricsCollector] = None
    ):
        """
        Initialize the split planner.

        Args:
            config: Configuration object; defaults are used when omitted
            metrics_collector: Optional metrics collector for monitoring
        """
        self.config = config or Config()
        self.metrics = metrics_collector or MetricsCollector(
            enable_prometheus=self.config.monitoring.enable_prometheus,
            prometheus_gateway=self.config.monitoring.prometheus_gateway,
            namespace=self.config.monitoring.namespace
        )
        self.logger = structlog.get_logger(
            component="SplitPlanner",
            config_env=self.config.environment
        )

        self.stats = {
            'plans_computed': 0,
            'splits_generated': 0,
            'precondition_failures': 0
        }

    @property
    def block_size_bytes(self) -> int:
        return self.config.storage.block_size_bytes

    def default_tile_size_bytes(self) -> int:
        """Uncompressed tile size from the configured tile layout."""
        tiles = self.config.tiles
        return estimate_tile_size_bytes(tiles.tile_cols, tiles.tile_rows, tiles.cell_type)

    def create_generator(
        self,
        tile_extent: TileExtent,
        zoom: int,
        tile_size_bytes: Optional[int] = None
    ) -> RasterSplitGenerator:
        """Generator sized for the configured storage block."""
        if tile_size_bytes is None:
            tile_size_bytes = self.default_tile_size_bytes()

        return RasterSplitGenerator.from_sizing(
            tile_extent,
            zoom,
            tile_size_bytes,
            self.block_size_bytes
        )

    def plan(
        self,
        tile_extent: TileExtent,
        zoom: int,
        tile_size_bytes: Optional[int] = None
    ) -> SplitPlan:
        """
        Compute the split plan for one zoom level.

        Args:
            tile_extent: Extent being loaded
            zoom: Zoom level of the extent
            tile_size_bytes: Uncompressed tile size; derived from config if omitted

        Returns:
            Split plan for the extent

        Raises:
            SplitPreconditionError: A tile row does not fit in one block
        """
        start_time = time.time()
        if tile_size_bytes is None:
            tile_size_bytes = self.default_tile_size_bytes()

        try:
            generator = self.create_generator(tile_extent, zoom, tile_size_bytes)
        except SplitPreconditionError as e:
            self.stats['precondition_failures'] += 1
            self.metrics.increment_counter('split_plans_total', labels={'status': 'precondition_failed'})
            self.logger.error(
                "Tile row does not fit in one storage block",
                tile_extent=str(tile_extent),
                zoom=zoom,
                extent_width=e.extent_width,
                tiles_per_block=e.tiles_per_block,
                tile_size_bytes=tile_size_bytes,
                block_size_bytes=self.block_size_bytes
            )
            raise

        plan = SplitPlan.from_generator(generator, tile_size_bytes)
        duration = time.time() - start_time

        self.stats['plans_computed'] += 1
        self.stats['splits_generated'] += plan.split_count

        self.metrics.increment_counter('split_plans_total', labels={'status': 'success'})
        self.metrics.increment_counter(
            'split_points_generated_total',
            value=plan.split_count,
            labels={'zoom': str(zoom)}
        )
        self.metrics.set_gauge('split_plan_partitions', plan.partition_count, labels={'zoom': str(zoom)})
        self.metrics.record_timing('split_plan_duration_seconds', duration)

        self.logger.info(
            "Split plan computed",
            tile_extent=str(tile_extent),
            zoom=zoom,
            increment_rows=plan.increment_rows,
            split_count=plan.split_count,
            partition_count=plan.partition_count,
            max_partition_bytes=plan.max_partition_bytes,
            block_size_bytes=self.block_size_bytes
        )

        return plan

    def plan_pyramid(
        self,
        tile_extent: TileExtent,
        zoom: int,
        tile_size_bytes: Optional[int] = None
    ) -> Dict[int, SplitPlan]:
        """
        Plan every pyramid level from ``zoom`` up to zoom 0.

        Each level up halves the extent on both axes.
        """
        if zoom < 0:
            raise ValueError(f"Pyramid base zoom must not be negative, got {zoom}")

        self.logger.info("Planning pyramid", base_zoom=zoom, tile_extent=str(tile_extent))

        plans = {}
        extent = tile_extent
        for level in range(zoom, -1, -1):
            plans[level] = self.plan(extent, level, tile_size_bytes)
            extent = extent.zoom_out()

        return plans

    def get_planning_stats(self) -> Dict[str, Any]:
        """Get planning statistics."""
        return self.stats.copy()
