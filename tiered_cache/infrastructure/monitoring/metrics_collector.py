#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

Prometheus metrics for the tiered cache:
- Hits by region and tier, misses by region
- Source load latency histogram by region
- Tier failures by tier and operation
- Invalidations by region and scope
- Sampled per-region gauges written by the metrics reporter

Architectural Decision: prometheus-client for industry-standard metrics
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from tiered_cache.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

CACHE_HITS = Counter(
    'tiered_cache_hits_total',
    'Total cache hits',
    ['region', 'tier']
)

CACHE_MISSES = Counter(
    'tiered_cache_misses_total',
    'Total reads that fell through both tiers to the source',
    ['region']
)

CACHE_LOAD_DURATION = Histogram(
    'tiered_cache_load_duration_seconds',
    'Source-of-truth load duration on cache miss',
    ['region'],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
)

CACHE_TIER_ERRORS = Counter(
    'tiered_cache_tier_errors_total',
    'Cache tier failures absorbed by the facade',
    ['tier', 'operation']
)

CACHE_INVALIDATIONS = Counter(
    'tiered_cache_invalidations_total',
    'Invalidations applied',
    ['region', 'scope']
)

# Sampled by the metrics reporter
REGION_HIT_COUNT = Gauge(
    'tiered_cache_region_hit_count',
    'Sampled hit count per region',
    ['region']
)

REGION_MISS_COUNT = Gauge(
    'tiered_cache_region_miss_count',
    'Sampled miss count per region',
    ['region']
)

REGION_EVICTION_COUNT = Gauge(
    'tiered_cache_region_eviction_count',
    'Sampled L1 eviction count per region',
    ['region']
)

REGION_LOAD_PENALTY = Gauge(
    'tiered_cache_region_average_load_penalty_ms',
    'Sampled average source load time per region in milliseconds',
    ['region']
)


class MetricsCollector:
    """
    Centralized metrics collector.

    Usage:
        metrics = MetricsCollector()
        metrics.record_cache_hit("products", "l1")
        metrics.record_load("products", 0.012)
        output = metrics.get_prometheus_metrics()
    """

    # =========================================================================
    # Read Path
    # =========================================================================

    def record_cache_hit(self, region: str, tier: str) -> None:
        CACHE_HITS.labels(region=region, tier=tier).inc()

    def record_cache_miss(self, region: str) -> None:
        CACHE_MISSES.labels(region=region).inc()

    def record_load(self, region: str, duration_seconds: float) -> None:
        CACHE_LOAD_DURATION.labels(region=region).observe(duration_seconds)

    # =========================================================================
    # Failures & Invalidation
    # =========================================================================

    def record_tier_error(self, tier: str, operation: str) -> None:
        CACHE_TIER_ERRORS.labels(tier=tier, operation=operation).inc()

    def record_invalidation(self, region: str, scope: str) -> None:
        CACHE_INVALIDATIONS.labels(region=region, scope=scope).inc()

    # =========================================================================
    # Sampled Region Gauges
    # =========================================================================

    def set_region_sample(
        self,
        region: str,
        hit_count: int,
        miss_count: int,
        eviction_count: int,
        average_load_penalty_ms: float,
    ) -> None:
        REGION_HIT_COUNT.labels(region=region).set(hit_count)
        REGION_MISS_COUNT.labels(region=region).set(miss_count)
        REGION_EVICTION_COUNT.labels(region=region).set(eviction_count)
        REGION_LOAD_PENALTY.labels(region=region).set(average_load_penalty_ms)

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """Prometheus text format metrics."""
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        return CONTENT_TYPE_LATEST
