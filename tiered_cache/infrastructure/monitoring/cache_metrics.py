"""
Cache Metrics Reporter

Samples per-region cache statistics on a fixed interval and emits one
structured log line per region, mirroring the values into Prometheus
gauges. Sampling reads counters without locks and never blocks or fails a
cache operation.
"""

import asyncio
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from tiered_cache.core.config.constants import Stage
from tiered_cache.core.logging.logger import get_logger, log_stage
from tiered_cache.infrastructure.monitoring.metrics_collector import MetricsCollector

if TYPE_CHECKING:
    from tiered_cache.infrastructure.cache.tiered_cache import TieredCache

logger = get_logger(__name__)

DEFAULT_INTERVAL = 60.0


@dataclass(frozen=True, slots=True)
class RegionMetrics:
    """One sample of one region's counters."""

    region: str
    hit_count: int
    miss_count: int
    eviction_count: int
    average_load_penalty_ms: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class CacheMetricsReporter:
    """
    Periodic per-region statistics logger.

    Usage:
        reporter = CacheMetricsReporter(cache, interval=60)
        reporter.start()
        ...
        await reporter.stop()

    Args:
        cache: Cache whose regions are sampled
        interval: Seconds between samples
        metrics: Prometheus collector (default: new MetricsCollector)
    """

    def __init__(
        self,
        cache: "TieredCache",
        interval: float = DEFAULT_INTERVAL,
        metrics: MetricsCollector | None = None,
    ):
        if interval <= 0:
            raise ValueError("metrics interval must be > 0")
        self._cache = cache
        self._interval = interval
        self._metrics = metrics or MetricsCollector()
        self._task: asyncio.Task | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sample(self) -> list[RegionMetrics]:
        """Current counters for every known region."""
        samples = []
        for region in self._cache.regions():
            stats = self._cache.region_stats(region)
            samples.append(
                RegionMetrics(
                    region=region,
                    hit_count=stats["hit_count"],
                    miss_count=stats["miss_count"],
                    eviction_count=stats["eviction_count"],
                    average_load_penalty_ms=stats["average_load_penalty_ms"],
                )
            )
        return samples

    def report_once(self) -> list[RegionMetrics]:
        """Take one sample, log it and update the gauges."""
        samples = self.sample()
        for sample in samples:
            log_stage(logger, Stage.METRICS, "Cache region statistics", **sample.to_dict())
            self._metrics.set_region_sample(
                sample.region,
                sample.hit_count,
                sample.miss_count,
                sample.eviction_count,
                sample.average_load_penalty_ms,
            )
        return samples

    def start(self) -> None:
        """Schedule the reporting loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        log_stage(logger, Stage.METRICS, "Cache metrics reporter started", interval=self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log_stage(logger, Stage.METRICS, "Cache metrics reporter stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.report_once()
            except Exception as e:
                logger.error("Cache metrics sampling failed", stage=Stage.METRICS.value, error=str(e))
