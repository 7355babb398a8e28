"""
Unit Tests for the Metrics Collector
"""

import json
import unittest
from unittest.mock import patch

import pytest

from raster_splits.monitoring import MetricsCollector


class TestMetricsCollector(unittest.TestCase):
    """Test suite for metric recording and export."""

    def setUp(self):
        self.metrics = MetricsCollector(enable_prometheus=True)

    def test_counter_reaches_prometheus(self):
        self.metrics.increment_counter('split_plans_total', labels={'status': 'success'})
        self.metrics.increment_counter('split_plans_total', labels={'status': 'success'})

        exported = self.metrics.export_metrics("prometheus")
        self.assertIn('raster_splits_split_plans_total{status="success"} 2.0', exported)

    def test_gauge_reaches_prometheus(self):
        self.metrics.set_gauge('split_plan_partitions', 16, labels={'zoom': '17'})
        exported = self.metrics.export_metrics("prometheus")
        self.assertIn('raster_splits_split_plan_partitions{zoom="17"} 16.0', exported)

    def test_undeclared_metric_is_buffered_only(self):
        self.metrics.increment_counter('custom_events', 3)
        summary = self.metrics.get_metric_summary('custom_events')
        self.assertEqual(summary['latest_value'], 3)
        self.assertEqual(summary['data_points'], 1)

    def test_missing_labels_are_counted_not_raised(self):
        self.metrics.increment_counter('split_plans_total')
        health = self.metrics.get_system_health()
        self.assertEqual(health['metrics_collection_errors'], 1)
        self.assertEqual(health['status'], 'degraded')

    def test_summary(self):
        for value in (1.0, 2.0, 3.0):
            self.metrics.record_histogram('split_plan_duration_seconds', value)

        summary = self.metrics.get_metric_summary('split_plan_duration_seconds')
        self.assertEqual(summary['data_points'], 3)
        self.assertEqual(summary['min_value'], 1.0)
        self.assertEqual(summary['max_value'], 3.0)
        self.assertEqual(summary['avg_value'], 2.0)
        self.assertIn('stddev', summary)

    def test_summary_for_unknown_metric(self):
        self.assertIn('error', self.metrics.get_metric_summary('nothing'))

    def test_time_function(self):
        @self.metrics.time_function('split_plan_duration_seconds')
        def work():
            return "done"

        self.assertEqual(work(), "done")
        self.assertEqual(
            self.metrics.get_metric_summary('split_plan_duration_seconds')['data_points'],
            1
        )

    def test_time_function_reraises(self):
        @self.metrics.time_function('failing_operation_seconds')
        def fail():
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            fail()

        recorded = [m for m in self.metrics.metrics_buffer if m.name == 'failing_operation_seconds']
        self.assertEqual(recorded[0].labels, {'status': 'error'})

    def test_json_export(self):
        self.metrics.increment_counter('split_plans_total', labels={'status': 'success'})
        data = json.loads(self.metrics.export_metrics("json"))
        self.assertEqual(data['metrics_count'], 1)
        self.assertEqual(data['metrics'][0]['labels'], {'status': 'success'})

    def test_unsupported_export_format(self):
        with self.assertRaises(ValueError):
            self.metrics.export_metrics("xml")

    def test_prometheus_disabled(self):
        metrics = MetricsCollector(enable_prometheus=False)
        metrics.increment_counter('split_plans_total', labels={'status': 'success'})
        self.assertEqual(metrics.export_metrics("prometheus"), "")
        self.assertEqual(metrics.get_system_health()['total_metrics_collected'], 1)

    def test_push_without_gateway(self):
        self.assertFalse(self.metrics.push_to_prometheus_gateway())

    @patch('raster_splits.monitoring.metrics.push_to_gateway')
    def test_push_to_gateway(self, mock_push):
        metrics = MetricsCollector(prometheus_gateway="localhost:9091")
        self.assertTrue(metrics.push_to_prometheus_gateway("test_job"))
        mock_push.assert_called_once_with(
            "localhost:9091",
            job="test_job",
            registry=metrics.prometheus_registry
        )

    @patch('raster_splits.monitoring.metrics.push_to_gateway')
    def test_cleanup_pushes_final_metrics(self, mock_push):
        metrics = MetricsCollector(prometheus_gateway="localhost:9091")
        metrics.cleanup()
        mock_push.assert_called_once()

    @patch('raster_splits.monitoring.metrics.push_to_gateway')
    def test_cleanup_without_gateway(self, mock_push):
        self.metrics.cleanup()
        mock_push.assert_not_called()

    @patch('raster_splits.monitoring.metrics.push_to_gateway', side_effect=OSError("unreachable"))
    def test_push_failure_returns_false(self, mock_push):
        metrics = MetricsCollector(prometheus_gateway="localhost:9091")
        self.assertFalse(metrics.push_to_prometheus_gateway())


if __name__ == '__main__':
    pytest.main([__file__, "-v"])
