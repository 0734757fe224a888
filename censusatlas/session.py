"""
Census Atlas — Load session.

Owns the currently displayed feature set and the fetchers that produce it.
Each ``load`` gets a generation number; when a slower, older load finishes
after a newer one has started, its result is returned to its caller but
never applied to the session.

Usage::

    session = AtlasSession()
    await session.load(GeoLevel.COUNTY)
    view = session.view(get_metric("median_income"), ScopeFilter("06"))
    await session.close()
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence

from censusatlas import config
from censusatlas.analytics.pipeline import recompute
from censusatlas.cache_backend import CacheBackend, get_cache_backend
from censusatlas.core.constants import STATS_CACHE_KEY_PREFIX
from censusatlas.data_pipeline.fetcher import CensusStatsFetcher, GeometryFetcher
from censusatlas.data_pipeline.joiner import join_features
from censusatlas.domain.catalog import METRIC_CATALOG
from censusatlas.domain.enums import GeoLevel
from censusatlas.domain.models import (
    JoinedFeature, LoadResult, MapView, MetricDefinition, ScopeFilter, StatsRecord,
)
from censusatlas.metrics import record_cache_access, record_load, record_stale_discard

logger = logging.getLogger(__name__)


def stats_cache_key(level: GeoLevel) -> str:
    return f"{STATS_CACHE_KEY_PREFIX}:{config.CENSUS_YEAR}:{GeoLevel(level).value}"


def _valid_stats(payload: object) -> bool:
    return isinstance(payload, dict) and all(isinstance(v, dict) for v in payload.values())


class AtlasSession:
    """Current level + joined features, replaced wholesale by each applied load."""

    def __init__(
        self,
        stats_fetcher: Optional[CensusStatsFetcher] = None,
        geometry_fetcher: Optional[GeometryFetcher] = None,
        cache: Optional[CacheBackend] = None,
        stats_cache_ttl: Optional[int] = None,
        catalog: Sequence[MetricDefinition] = METRIC_CATALOG,
    ) -> None:
        self.stats_fetcher = stats_fetcher or CensusStatsFetcher(catalog=catalog)
        self.geometry_fetcher = geometry_fetcher or GeometryFetcher()
        self._cache = cache
        self.stats_cache_ttl = (
            stats_cache_ttl if stats_cache_ttl is not None else config.STATS_CACHE_TTL_SECONDS
        )
        self.catalog = tuple(catalog)

        self._generation = 0
        self.applied_generation = 0
        self.level: Optional[GeoLevel] = None
        self.features: List[JoinedFeature] = []
        self.degraded = False
        self._by_id: Dict[str, JoinedFeature] = {}

    # ------------------------------------------------------------------
    # Generation bookkeeping
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        """Generation of the most recently *started* load."""
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    @property
    def loaded(self) -> bool:
        return self.applied_generation > 0

    def serves(self, level: GeoLevel) -> bool:
        """True when the applied load for ``level`` can be reused as is.

        A load whose geometry or statistics came back empty is never reused,
        so the next request retries the sources.
        """
        return self.loaded and self.level is level and not self.degraded

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @property
    def cache(self) -> CacheBackend:
        if self._cache is None:
            self._cache = get_cache_backend()
        return self._cache

    async def _stats(self, level: GeoLevel) -> StatsRecord:
        if self.stats_cache_ttl <= 0:
            return await self.stats_fetcher.fetch_stats(level)

        key = stats_cache_key(level)
        cached = self.cache.get_json(key)
        if _valid_stats(cached):
            record_cache_access(True)
            return cached
        record_cache_access(False)

        stats = await self.stats_fetcher.fetch_stats(level)
        # An empty record means every partition failed (or no key); retry next time
        if stats:
            self.cache.set_json(key, stats, ttl_seconds=self.stats_cache_ttl)
        return stats

    async def load(self, level: GeoLevel) -> LoadResult:
        """Fetch geometry and statistics concurrently, then join them.

        The joined features are applied to the session only if no newer
        ``load`` was started in the meantime.
        """
        level = GeoLevel(level)
        self._generation += 1
        generation = self._generation
        logger.info("Load #%d started for level=%s", generation, level.value)
        started = time.perf_counter()

        collection, stats = await asyncio.gather(
            self.geometry_fetcher.fetch_geometry(level),
            self._stats(level),
        )
        features = join_features(collection, stats, level, self.catalog)
        record_load(level, time.perf_counter() - started)

        result = LoadResult(
            generation=generation,
            level=level,
            features=features,
            stats_count=len(stats),
            applied=self.is_current(generation),
        )
        if result.applied:
            self.level = level
            self.features = features
            self.degraded = result.degraded
            self._by_id = {f.id: f for f in features if f.id}
            self.applied_generation = generation
            logger.info(
                "Load #%d applied: %d features, %d stats rows",
                generation, len(features), len(stats),
            )
            if result.degraded:
                logger.warning(
                    "Load #%d for level=%s is incomplete; the next request reloads it",
                    generation, level.value,
                )
        else:
            record_stale_discard()
            logger.info(
                "Load #%d for level=%s discarded; #%d is newer",
                generation, level.value, self._generation,
            )
        return result

    # ------------------------------------------------------------------
    # Queries over the applied feature set
    # ------------------------------------------------------------------

    def view(self, metric: MetricDefinition, scope: Optional[ScopeFilter] = None) -> MapView:
        return recompute(self.features, metric, scope)

    def find_feature(self, feature_id: str) -> Optional[JoinedFeature]:
        return self._by_id.get(feature_id)

    async def close(self) -> None:
        await self.stats_fetcher.close()
        await self.geometry_fetcher.close()
