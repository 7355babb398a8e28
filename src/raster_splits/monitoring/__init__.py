"""
Monitoring Module

Prometheus-backed metrics for split planning and Spark partitioning.
"""

from .metrics import MetricsCollector, MetricValue

__all__ = [
    "MetricsCollector",
    "MetricValue"
]
