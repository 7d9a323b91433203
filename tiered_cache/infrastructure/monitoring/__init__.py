"""
Monitoring Module

Prometheus metrics and the periodic per-region cache statistics reporter.
"""

from .cache_metrics import CacheMetricsReporter, RegionMetrics
from .metrics_collector import MetricsCollector

__all__ = ["CacheMetricsReporter", "RegionMetrics", "MetricsCollector"]
