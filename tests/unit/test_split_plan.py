"""
Unit Tests for Split Plans and the Split Planner

Covers partition band reporting, block-size checks, pyramid planning and
the metrics and statistics the planner records.
"""

import json
import unittest

import pandas as pd
import pytest

from raster_splits.tiling import TileExtent, tile_id
from raster_splits.splitting import (
    Rows,
    RasterSplitGenerator,
    SplitPlan,
    SplitPlanner,
    SplitPreconditionError
)
from raster_splits.monitoring import MetricsCollector
from raster_splits.utils.config import Config


class TestSplitPlan(unittest.TestCase):
    """Test suite for partition band reporting."""

    def setUp(self):
        self.extent = TileExtent(xmin=2, ymin=3, xmax=5, ymax=12)
        self.generator = RasterSplitGenerator(self.extent, 4, Rows(3))
        self.plan = SplitPlan.from_generator(self.generator, tile_size_bytes=100)

    def test_bands_cover_extent(self):
        bands = self.plan.bands
        self.assertEqual(self.plan.partition_count, 4)
        self.assertEqual(
            [(band.start_row, band.end_row) for band in bands],
            [(3, 5), (6, 8), (9, 11), (12, 12)]
        )
        self.assertEqual(sum(band.tile_count for band in bands), self.extent.tile_count)

    def test_band_keys_match_splits(self):
        bands = self.plan.bands
        self.assertEqual(self.plan.splits, (85, 133, 181))
        self.assertEqual(bands[0].start_key, tile_id(2, 3, 4))
        self.assertEqual([band.end_key for band in bands[:-1]], list(self.plan.splits))
        self.assertEqual(bands[-1].end_key, tile_id(5, 12, 4))

    def test_band_sizes(self):
        self.assertEqual([band.tile_count for band in self.plan.bands], [12, 12, 12, 4])
        self.assertEqual(self.plan.bands[0].worst_case_bytes, 1200)
        self.assertEqual(self.plan.bands[-1].row_count, 1)
        self.assertEqual(self.plan.max_partition_bytes, 1200)

    def test_fits_block(self):
        self.assertTrue(self.plan.fits_block(1200))
        self.assertFalse(self.plan.fits_block(1199))

    def test_disabled_plan_has_single_band(self):
        plan = SplitPlan.from_generator(
            RasterSplitGenerator(self.extent, 4),
            tile_size_bytes=100
        )
        self.assertIsNone(plan.increment_rows)
        self.assertEqual(plan.splits, ())
        self.assertEqual(plan.partition_count, 1)
        self.assertEqual(plan.bands[0].start_row, 3)
        self.assertEqual(plan.bands[0].end_row, 12)
        self.assertEqual(plan.bands[0].tile_count, 40)

    def test_to_dataframe(self):
        df = self.plan.to_dataframe()
        self.assertIsInstance(df, pd.DataFrame)
        self.assertEqual(len(df), 4)
        self.assertEqual(df.index.name, 'index')
        self.assertEqual(list(df['row_count']), [3, 3, 3, 1])
        self.assertEqual(int(df['worst_case_bytes'].sum()), 4000)

    def test_to_dict_is_json_serializable(self):
        data = json.loads(json.dumps(self.plan.to_dict()))
        self.assertEqual(data['increment_rows'], 3)
        self.assertEqual(data['splits'], [85, 133, 181])
        self.assertEqual(data['split_count'], 3)
        self.assertEqual(len(data['bands']), 4)

    def test_block_sized_plan_never_exceeds_block(self):
        extent = TileExtent(0, 0, 9, 99999)
        generator = RasterSplitGenerator.from_sizing(extent, 17, 1000, 64000000)
        plan = SplitPlan.from_generator(generator, 1000)

        self.assertEqual(plan.partition_count, 16)
        self.assertEqual(plan.max_partition_bytes, 64000000)
        self.assertTrue(plan.fits_block(64000000))
        self.assertEqual(plan.bands[-1].row_count, 4000)


class TestSplitPlanner(unittest.TestCase):
    """Test suite for the configured split planner."""

    def setUp(self):
        self.config = Config()
        self.metrics = MetricsCollector(enable_prometheus=True)
        self.planner = SplitPlanner(self.config, self.metrics)

    def test_initialization(self):
        self.assertEqual(self.planner.block_size_bytes, 64 * 1024 * 1024)
        self.assertEqual(self.planner.default_tile_size_bytes(), 262144)
        self.assertEqual(
            self.planner.get_planning_stats(),
            {'plans_computed': 0, 'splits_generated': 0, 'precondition_failures': 0}
        )

    def test_plan_with_explicit_tile_size(self):
        self.config.storage.block_size_bytes = 64000000
        plan = self.planner.plan(TileExtent(0, 0, 9, 99999), 17, tile_size_bytes=1000)

        self.assertEqual(plan.increment_rows, 6400)
        self.assertEqual(plan.split_count, 15)

        stats = self.planner.get_planning_stats()
        self.assertEqual(stats['plans_computed'], 1)
        self.assertEqual(stats['splits_generated'], 15)

    def test_plan_with_configured_tile_size(self):
        # 256 float32 tiles of 256x256 per 64 MiB block
        plan = self.planner.plan(TileExtent(0, 0, 15, 99), 10)
        self.assertEqual(plan.tile_size_bytes, 262144)
        self.assertEqual(plan.increment_rows, 16)
        self.assertEqual(plan.split_count, 6)

    def test_plan_records_metrics(self):
        self.planner.plan(TileExtent(0, 0, 15, 99), 10)

        exported = self.metrics.export_metrics("prometheus")
        self.assertIn('raster_splits_split_plans_total{status="success"} 1.0', exported)
        self.assertIn('raster_splits_split_points_generated_total{zoom="10"} 6.0', exported)

        summary = self.metrics.get_metric_summary('split_plan_duration_seconds')
        self.assertEqual(summary['data_points'], 1)

    def test_precondition_failure_is_reraised(self):
        with self.assertRaises(SplitPreconditionError):
            self.planner.plan(TileExtent(0, 0, 299, 9), 10)

        self.assertEqual(self.planner.get_planning_stats()['precondition_failures'], 1)
        exported = self.metrics.export_metrics("prometheus")
        self.assertIn('raster_splits_split_plans_total{status="precondition_failed"} 1.0', exported)

    def test_disabled_block_size(self):
        self.config.storage.block_size_bytes = 0
        plan = self.planner.plan(TileExtent(0, 0, 299, 9), 10)
        self.assertEqual(plan.splits, ())
        self.assertEqual(plan.partition_count, 1)

    def test_create_generator(self):
        generator = self.planner.create_generator(TileExtent(0, 0, 15, 99), 10)
        self.assertEqual(generator.increment, Rows(16))

    def test_plan_pyramid(self):
        self.config.storage.block_size_bytes = 64000000
        plans = self.planner.plan_pyramid(TileExtent(0, 0, 1023, 1023), 12, tile_size_bytes=1000)

        self.assertEqual(sorted(plans), list(range(0, 13)))
        self.assertEqual(plans[12].increment_rows, 62)
        self.assertEqual(plans[11].increment_rows, 125)
        self.assertEqual(plans[10].increment_rows, 250)
        self.assertIsNone(plans[9].increment_rows)
        self.assertEqual(plans[1].split_count, 0)
        self.assertEqual(plans[1].bands[0].tile_count, 1)
        self.assertEqual(plans[0].split_count, 0)
        self.assertEqual(plans[0].bands[0].start_key, 0)
        self.assertEqual(self.planner.get_planning_stats()['plans_computed'], 13)

    def test_plan_pyramid_from_zoom_zero(self):
        plans = self.planner.plan_pyramid(TileExtent(0, 0, 0, 0), 0, tile_size_bytes=1)
        self.assertEqual(list(plans), [0])
        self.assertEqual(plans[0].splits, ())

    def test_plan_pyramid_rejects_negative_zoom(self):
        with self.assertRaises(ValueError):
            self.planner.plan_pyramid(TileExtent(0, 0, 0, 0), -1)

    def test_plan_outside_zoom_grid(self):
        with self.assertRaises(ValueError):
            self.planner.plan(TileExtent(0, 0, 9, 99999), 10, tile_size_bytes=1000)
        self.assertEqual(self.planner.get_planning_stats()['plans_computed'], 0)

    def test_default_metrics_collector(self):
        config = Config()
        config.monitoring.enable_prometheus = False
        planner = SplitPlanner(config)
        self.assertFalse(planner.metrics.enable_prometheus)
        planner.plan(TileExtent(0, 0, 3, 3), 4, tile_size_bytes=1)
        self.assertEqual(planner.get_planning_stats()['plans_computed'], 1)


if __name__ == '__main__':
    pytest.main([__file__, "-v"])
