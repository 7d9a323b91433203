"""
Cache Runtime

Startup and shutdown for an application embedding the cache:

    async with cache_runtime(repositories=repos) as runtime:
        product = await runtime.products.get_by_id(42)

Startup configures logging, wires both tiers from settings, connects Redis
(running on L1 alone if it is down), starts the metrics reporter and builds
the catalogue services. Shutdown reverses it.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from tiered_cache.application.models import build_codec
from tiered_cache.application.services import (
    CategoryService,
    ProductService,
    SettingService,
    UserService,
)
from tiered_cache.core.config.constants import Stage
from tiered_cache.core.config.settings import Settings, get_settings
from tiered_cache.core.interfaces.cache import CacheBackend
from tiered_cache.core.interfaces.repository import Repository
from tiered_cache.core.logging.logger import get_logger, setup_logging
from tiered_cache.infrastructure.cache.tiered_cache import TieredCache
from tiered_cache.infrastructure.monitoring.cache_metrics import CacheMetricsReporter

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CatalogRepositories:
    products: Repository
    categories: Repository
    settings: Repository
    users: Repository


@dataclass(slots=True)
class CacheRuntime:
    cache: TieredCache
    reporter: CacheMetricsReporter
    products: ProductService
    categories: CategoryService
    settings: SettingService
    users: UserService


@asynccontextmanager
async def cache_runtime(
    repositories: CatalogRepositories,
    settings: Settings | None = None,
    backend: CacheBackend | None = None,
    start_reporter: bool = True,
) -> AsyncIterator[CacheRuntime]:
    """
    Manage the cache lifecycle.

    Args:
        repositories: Source-of-truth access for each entity
        settings: Settings (default: get_settings())
        backend: L2 backend (default: RedisClient from settings)
        start_reporter: Run the periodic metrics reporter
    """
    settings = settings or get_settings()
    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        f"Starting {settings.app.APP_NAME}",
        stage=Stage.LIFECYCLE.value,
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    cache = TieredCache.from_settings(settings, codec=build_codec(), backend=backend)
    await cache.initialize()

    reporter = CacheMetricsReporter(cache, interval=settings.cache.CACHE_METRICS_INTERVAL)
    if start_reporter:
        reporter.start()

    runtime = CacheRuntime(
        cache=cache,
        reporter=reporter,
        products=ProductService(repositories.products, cache),
        categories=CategoryService(repositories.categories, cache),
        settings=SettingService(repositories.settings, cache),
        users=UserService(repositories.users, cache),
    )

    try:
        yield runtime
    finally:
        await reporter.stop()
        await cache.shutdown()
        logger.info("Cache runtime stopped", stage=Stage.LIFECYCLE.value)
