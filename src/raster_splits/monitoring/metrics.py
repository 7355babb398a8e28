"""
Metrics Collection System

Collects metrics for split planning: plans computed, split points emitted,
planning latency and partition counts. Metrics are mirrored into a private
Prometheus registry and kept in a bounded in-memory buffer for summaries and
JSON export.
"""

import time
import threading
import statistics
import json
from typing import Dict, List, Optional, Any, Union, Callable
from dataclasses import dataclass, field
from collections import deque
from datetime import datetime, timedelta, timezone

import structlog
from prometheus_client import (
    Counter, Histogram, Gauge, CollectorRegistry,
    generate_latest, push_to_gateway
)


@dataclass
class MetricValue:
    """Represents a single metric value with metadata."""
    name: str
    value: Union[int, float]
    timestamp: datetime
    labels: Dict[str, str] = field(default_factory=dict)
    description: str = ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MetricsCollector:
    """
    Metrics collector for the split planner.

    Prometheus metrics are only updated for names declared in
    ``_init_prometheus``; every recorded value also lands in the buffer.
    """

    def __init__(
        self,
        enable_prometheus: bool = True,
        prometheus_gateway: Optional[str] = None,
        namespace: str = "raster_splits",
        buffer_size: int = 10000
    ):
        """
        Initialize the metrics collector.

        Args:
            enable_prometheus: Enable Prometheus metrics collection
            prometheus_gateway: Prometheus pushgateway URL
            namespace: Prefix for Prometheus metric names
            buffer_size: Number of recent values kept in memory
        """
        self.enable_prometheus = enable_prometheus
        self.prometheus_gateway = prometheus_gateway
        self.namespace = namespace

        self.logger = structlog.get_logger(collector_type="MetricsCollector")

        self.metrics_buffer = deque(maxlen=buffer_size)
        self.lock = threading.RLock()

        self.builtin_metrics = {
            'system_start_time': time.time(),
            'total_metrics_collected': 0,
            'metrics_collection_errors': 0,
            'last_metric_timestamp': None
        }

        if self.enable_prometheus:
            self._init_prometheus()

    def _init_prometheus(self) -> None:
        """Initialize Prometheus metrics."""
        try:
            self.prometheus_registry = CollectorRegistry()
            self.prometheus_counters = {}
            self.prometheus_histograms = {}
            self.prometheus_gauges = {}

            self._create_prometheus_metric(
                'counter', 'split_plans_total',
                'Number of split plans computed',
                ['status']
            )

            self._create_prometheus_metric(
                'counter', 'split_points_generated_total',
                'Number of split keys emitted',
                ['zoom']
            )

            self._create_prometheus_metric(
                'histogram', 'split_plan_duration_seconds',
                'Duration of split plan computation'
            )

            self._create_prometheus_metric(
                'gauge', 'split_plan_partitions',
                'Partitions in the most recent plan',
                ['zoom']
            )

            self._create_prometheus_metric(
                'counter', 'spark_partition_jobs_total',
                'Spark DataFrames partitioned along split keys',
                ['operation']
            )

        except Exception as e:
            self.logger.error("Failed to initialize Prometheus metrics", error=str(e))
            self.enable_prometheus = False

    def _create_prometheus_metric(
        self,
        metric_type: str,
        name: str,
        description: str,
        labels: List[str] = None
    ) -> None:
        """Create a Prometheus metric in the private registry."""
        labels = labels or []
        full_name = f"{self.namespace}_{name}" if self.namespace else name

        if metric_type == 'counter':
            self.prometheus_counters[name] = Counter(
                full_name, description, labels, registry=self.prometheus_registry
            )
        elif metric_type == 'histogram':
            self.prometheus_histograms[name] = Histogram(
                full_name, description, labels, registry=self.prometheus_registry
            )
        elif metric_type == 'gauge':
            self.prometheus_gauges[name] = Gauge(
                full_name, description, labels, registry=self.prometheus_registry
            )
        else:
            raise ValueError(f"Unsupported metric type: {metric_type}")

    def _record(
        self,
        kind: str,
        name: str,
        value: Union[int, float],
        labels: Optional[Dict[str, str]],
        description: str
    ) -> None:
        labels = labels or {}

        try:
            with self.lock:
                self.metrics_buffer.append(MetricValue(
                    name=name,
                    value=value,
                    timestamp=_utcnow(),
                    labels=labels,
                    description=description
                ))

                self.builtin_metrics['total_metrics_collected'] += 1
                self.builtin_metrics['last_metric_timestamp'] = time.time()

                if not self.enable_prometheus:
                    return

                if kind == 'counter' and name in self.prometheus_counters:
                    metric = self.prometheus_counters[name]
                    (metric.labels(**labels) if labels else metric).inc(value)
                elif kind == 'histogram' and name in self.prometheus_histograms:
                    metric = self.prometheus_histograms[name]
                    (metric.labels(**labels) if labels else metric).observe(value)
                elif kind == 'gauge' and name in self.prometheus_gauges:
                    metric = self.prometheus_gauges[name]
                    (metric.labels(**labels) if labels else metric).set(value)

        except Exception as e:
            self.builtin_metrics['metrics_collection_errors'] += 1
            self.logger.error(
                f"Failed to record {kind}",
                metric_name=name,
                error=str(e)
            )

    def increment_counter(
        self,
        name: str,
        value: Union[int, float] = 1,
        labels: Dict[str, str] = None,
        description: str = ""
    ) -> None:
        """
        Increment a counter metric.

        Args:
            name: Metric name
            value: Value to increment by
            labels: Metric labels
            description: Metric description
        """
        self._record('counter', name, value, labels, description)

    def record_histogram(
        self,
        name: str,
        value: Union[int, float],
        labels: Dict[str, str] = None,
        description: str = ""
    ) -> None:
        """Record an observation for a histogram metric."""
        self._record('histogram', name, value, labels, description)

    def set_gauge(
        self,
        name: str,
        value: Union[int, float],
        labels: Dict[str, str] = None,
        description: str = ""
    ) -> None:
        """Set a gauge metric."""
        self._record('gauge', name, value, labels, description)

    def record_timing(
        self,
        name: str,
        duration: float,
        labels: Dict[str, str] = None,
        description: str = ""
    ) -> None:
        """Record a duration in seconds."""
        self.record_histogram(name, duration, labels, description)

    def time_function(self, name: str, labels: Dict[str, str] = None):
        """
        Decorator to time function execution.

        Args:
            name: Metric name
            labels: Metric labels

        Returns:
            Decorator function
        """
        def decorator(func: Callable) -> Callable:
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    result = func(*args, **kwargs)
                    self.record_timing(name, time.time() - start_time, labels)
                    return result
                except Exception:
                    error_labels = {**(labels or {}), 'status': 'error'}
                    self.record_timing(name, time.time() - start_time, error_labels)
                    raise
            return wrapper
        return decorator

    def get_metric_summary(self, metric_name: str, hours: int = 1) -> Dict[str, Any]:
        """Summary statistics for a metric over the recent window."""
        cutoff = _utcnow() - timedelta(hours=hours)

        with self.lock:
            values = [
                m.value for m in self.metrics_buffer
                if m.name == metric_name and m.timestamp >= cutoff
            ]

        if not values:
            return {'error': f'No recent data for metric {metric_name}'}

        summary = {
            'metric_name': metric_name,
            'time_range_hours': hours,
            'data_points': len(values),
            'latest_value': values[-1],
            'min_value': min(values),
            'max_value': max(values),
            'avg_value': statistics.mean(values),
            'sum': sum(values)
        }

        if len(values) > 1:
            summary['stddev'] = statistics.stdev(values)

        return summary

    def get_system_health(self) -> Dict[str, Any]:
        """Collector health and backend status."""
        health = {
            'status': 'healthy',
            'uptime_seconds': time.time() - self.builtin_metrics['system_start_time'],
            'total_metrics_collected': self.builtin_metrics['total_metrics_collected'],
            'metrics_collection_errors': self.builtin_metrics['metrics_collection_errors'],
            'last_metric_timestamp': self.builtin_metrics['last_metric_timestamp'],
            'metrics_buffer_size': len(self.metrics_buffer),
            'backends': {
                'prometheus_enabled': self.enable_prometheus
            }
        }

        error_rate = (
            self.builtin_metrics['metrics_collection_errors'] /
            max(self.builtin_metrics['total_metrics_collected'], 1)
        )
        if error_rate > 0.1:
            health['status'] = 'degraded'

        return health

    def push_to_prometheus_gateway(self, job_name: str = "raster_split_planning") -> bool:
        """Push metrics to Prometheus pushgateway."""
        if not self.enable_prometheus or not self.prometheus_gateway:
            return False

        try:
            push_to_gateway(
                self.prometheus_gateway,
                job=job_name,
                registry=self.prometheus_registry
            )
            self.logger.info(
                "Pushed metrics to Prometheus gateway",
                gateway=self.prometheus_gateway,
                job=job_name
            )
            return True

        except Exception as e:
            self.logger.error(
                "Failed to push metrics to Prometheus gateway",
                error=str(e)
            )
            return False

    def export_metrics(self, format: str = "json") -> str:
        """Export buffered metrics as JSON or the Prometheus text format."""
        if format.lower() == "json":
            with self.lock:
                metrics = [
                    {
                        'name': m.name,
                        'value': m.value,
                        'timestamp': m.timestamp.isoformat(),
                        'labels': m.labels,
                        'description': m.description
                    }
                    for m in self.metrics_buffer
                ]

            return json.dumps({
                'export_timestamp': _utcnow().isoformat(),
                'metrics_count': len(metrics),
                'metrics': metrics
            }, indent=2)

        if format.lower() == "prometheus":
            if not self.enable_prometheus:
                return ""
            return generate_latest(self.prometheus_registry).decode('utf-8')

        raise ValueError(f"Unsupported export format: {format}")

    def cleanup(self) -> None:
        """Push final metrics if a gateway is configured."""
        if self.enable_prometheus and self.prometheus_gateway:
            self.push_to_prometheus_gateway()
        self.logger.info("Metrics collector cleanup completed")
