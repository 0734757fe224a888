"""
Census Atlas — Geometry and Census statistics fetchers.

Wraps all outbound HTTP calls in two reusable classes.  Neither ever
raises on a remote failure: problems are logged, counted in
``censusatlas.metrics`` and turned into an empty contribution.

Usage::

    stats_fetcher = CensusStatsFetcher()
    geo_fetcher   = GeometryFetcher()
    stats    = await stats_fetcher.fetch_stats(GeoLevel.COUNTY)
    counties = await geo_fetcher.fetch_geometry(GeoLevel.COUNTY)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from censusatlas import config
from censusatlas.core.constants import (
    CENSUS_COUNTY_COLUMN, CENSUS_NAME_FIELD, CENSUS_STATE_COLUMN,
    CENSUS_ZCTA_COLUMN, HTTP_USER_AGENT,
)
from censusatlas.core.logging import redact
from censusatlas.core.utils import census_value
from censusatlas.data_pipeline.levels import level_profile
from censusatlas.data_pipeline.normalizer import normalize_id
from censusatlas.domain.catalog import METRIC_CATALOG, STATE_FIPS
from censusatlas.domain.enums import FailureKind, GeoLevel
from censusatlas.domain.models import GeoLevelProfile, MetricDefinition, StatsRecord
from censusatlas.metrics import record_fetch_failure

logger = logging.getLogger(__name__)

_HEADERS = {"User-Agent": HTTP_USER_AGENT}
_RETRY_STATUSES = {429, 500, 502, 503, 504}


def empty_collection() -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": []}


class _JsonSource:
    """Shared httpx plumbing: lazy client, bounded retries, JSON decoding.

    Pass ``client`` to share one ``httpx.AsyncClient`` (or a mocked one)
    between fetchers; a client passed in is never closed by ``close()``.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout if timeout is not None else config.HTTP_TIMEOUT_SECONDS
        self.max_retries = max(1, max_retries if max_retries is not None else config.HTTP_MAX_RETRIES)
        self.retry_backoff = (
            retry_backoff if retry_backoff is not None else config.HTTP_RETRY_BACKOFF_SECONDS
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _secret(self) -> str:
        return ""

    async def _client_get(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=_HEADERS,
                timeout=self._timeout,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def _get_json(
        self,
        url: str,
        label: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Optional[Any]:
        """GET ``url`` and decode the body.

        Retries 429/5xx responses and transport errors with exponential
        backoff.  Returns ``None`` on any failure, after logging it and
        recording it as a network or parse failure.
        """
        client = await self._client_get()
        delay = self.retry_backoff
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await client.get(url, params=params)
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status in _RETRY_STATUSES and attempt < self.max_retries:
                    logger.warning(
                        "%s: HTTP %s; retry %d/%d in %.1fs",
                        label, status, attempt, self.max_retries, delay,
                    )
                    await asyncio.sleep(delay)
                    delay *= 2
                    continue
                logger.error("%s: HTTP %s", label, status)
                record_fetch_failure(FailureKind.NETWORK)
                return None
            except httpx.InvalidURL as exc:
                logger.error("%s: invalid request URL: %s", label, redact(str(exc), self._secret()))
                record_fetch_failure(FailureKind.NETWORK)
                return None
            except httpx.HTTPError as exc:
                if attempt < self.max_retries:
                    logger.warning(
                        "%s: request failed (%s); retry %d/%d in %.1fs",
                        label, redact(str(exc), self._secret()), attempt, self.max_retries, delay,
                    )
                    await asyncio.sleep(delay)
                    delay *= 2
                    continue
                logger.error(
                    "%s: request failed after %d attempts: %s",
                    label, self.max_retries, redact(str(exc), self._secret()),
                )
                record_fetch_failure(FailureKind.NETWORK)
                return None

            try:
                data = resp.json()
            except ValueError as exc:
                logger.error("%s: malformed JSON body: %s", label, exc)
                record_fetch_failure(FailureKind.PARSE)
                return None
            if data is None:
                logger.error("%s: empty JSON body", label)
                record_fetch_failure(FailureKind.PARSE)
            return data
        return None

    async def close(self) -> None:
        """Cleanly close the underlying HTTP client if this fetcher created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()


# ---------------------------------------------------------------------------
# Tabular statistics
# ---------------------------------------------------------------------------

def _cell(row: Sequence[Any], idx: Optional[int]) -> Any:
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _row_id(row: Sequence[Any], level: GeoLevel, index: Dict[str, int]) -> str:
    if level is GeoLevel.COUNTY:
        state = _cell(row, index.get(CENSUS_STATE_COLUMN))
        county = _cell(row, index.get(CENSUS_COUNTY_COLUMN))
        if not state or not county:
            return ""
        return normalize_id(state, county)
    return normalize_id(_cell(row, index.get(CENSUS_ZCTA_COLUMN)))


def parse_census_table(
    table: Any,
    level: GeoLevel,
    catalog: Sequence[MetricDefinition] = METRIC_CATALOG,
) -> StatsRecord:
    """Turn a Census API array-of-arrays into a ``StatsRecord``.

    Row 0 is the header.  Each metric column is located by its
    ``api_variable``; a metric whose column is absent is 0.0 for every row.
    Rows that are not lists or carry no usable id are skipped.

    Raises ``ValueError`` when the body is not a table at all.
    """
    if not isinstance(table, list) or not table:
        raise ValueError("expected a non-empty JSON array of rows")
    header = table[0]
    if not isinstance(header, list) or not all(isinstance(h, str) for h in header):
        raise ValueError("first row is not a list of column names")

    index: Dict[str, int] = {}
    for i, name in enumerate(header):
        index.setdefault(name, i)
    columns = {m.id: index.get(m.api_variable) for m in catalog}

    record: StatsRecord = {}
    for row in table[1:]:
        if not isinstance(row, list):
            continue
        canonical = _row_id(row, GeoLevel(level), index)
        if not canonical:
            continue
        record[canonical] = {
            metric_id: census_value(_cell(row, col))
            for metric_id, col in columns.items()
        }
    return record


class CensusStatsFetcher(_JsonSource):
    """Async client for the Census ACS profile endpoint.

    County data is requested one state at a time, concurrently; ZCTA data
    in a single request.  Partitions that fail contribute nothing and never
    abort the others.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        catalog: Sequence[MetricDefinition] = METRIC_CATALOG,
        partitions: Sequence[str] = STATE_FIPS,
        max_concurrency: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._api_key = api_key
        self._base_url = base_url
        self.catalog = tuple(catalog)
        self.partitions = tuple(partitions)
        self.max_concurrency = max(
            1, max_concurrency if max_concurrency is not None else config.MAX_CONCURRENT_PARTITIONS
        )

    @property
    def api_key(self) -> str:
        return self._api_key if self._api_key is not None else config.CENSUS_API_KEY

    @property
    def base_url(self) -> str:
        return self._base_url or config.census_base_url()

    def _secret(self) -> str:
        return self.api_key

    def _params(self, profile: GeoLevelProfile, state_fips: Optional[str]) -> Dict[str, str]:
        requested = [CENSUS_NAME_FIELD] + [m.api_variable for m in self.catalog]
        params = {"get": ",".join(requested), "for": profile.census_for}
        if state_fips:
            params["in"] = f"{CENSUS_STATE_COLUMN}:{state_fips}"
        params["key"] = self.api_key
        return params

    async def _fetch_partition(
        self,
        profile: GeoLevelProfile,
        state_fips: Optional[str] = None,
    ) -> StatsRecord:
        """Fetch and parse one partition into its own record; never raises."""
        label = f"census {profile.level.value}" + (f" state={state_fips}" if state_fips else "")
        data = await self._get_json(self.base_url, label, params=self._params(profile, state_fips))
        if data is None:
            return {}
        try:
            return parse_census_table(data, profile.level, self.catalog)
        except ValueError as exc:
            logger.error("%s: unexpected response shape: %s", label, exc)
            record_fetch_failure(FailureKind.PARSE)
            return {}

    async def fetch_stats(self, level: GeoLevel) -> StatsRecord:
        """Fetch every catalog metric for every region at ``level``.

        Partition results are merged only after all partitions resolve, in
        completion order; on a duplicate id the later-completing partition
        wins.
        """
        level = GeoLevel(level)
        if not self.api_key:
            logger.debug("CENSUS_API_KEY is missing; skipping %s statistics fetch", level.value)
            record_fetch_failure(FailureKind.MISSING_CREDENTIAL)
            return {}

        profile = level_profile(level)
        parts: List[StatsRecord] = []
        if level.partitioned:
            semaphore = asyncio.Semaphore(self.max_concurrency)

            async def _bounded(fips: str) -> StatsRecord:
                async with semaphore:
                    return await self._fetch_partition(profile, fips)

            tasks = [asyncio.ensure_future(_bounded(fips)) for fips in self.partitions]
            for finished in asyncio.as_completed(tasks):
                parts.append(await finished)
        else:
            parts.append(await self._fetch_partition(profile))

        merged: StatsRecord = {}
        for part in parts:
            merged.update(part)

        succeeded = sum(1 for p in parts if p)
        logger.info(
            "Census %s stats: %d regions from %d/%d partitions",
            level.value, len(merged), succeeded, len(parts),
        )
        return merged


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

class GeometryFetcher(_JsonSource):
    """Async client for the boundary GeoJSON files.

    Any failure degrades to an empty FeatureCollection.
    """

    async def _fetch_collection(self, url: str, label: str) -> Dict[str, Any]:
        data = await self._get_json(url, label)
        if data is None:
            return empty_collection()
        features = data.get("features") if isinstance(data, dict) else None
        if not isinstance(features, list):
            logger.error("%s: response has no feature list", label)
            record_fetch_failure(FailureKind.PARSE)
            return empty_collection()
        return {"type": "FeatureCollection", "features": features}

    async def fetch_geometry(self, level: GeoLevel) -> Dict[str, Any]:
        """Fetch the region boundaries for ``level``."""
        level = GeoLevel(level)
        collection = await self._fetch_collection(
            level_profile(level).geometry_url, f"{level.value} geometry",
        )
        logger.info("%s geometry: %d features", level.value, len(collection["features"]))
        return collection

    async def fetch_state_boundaries(self) -> Dict[str, Any]:
        """Fetch the state outline layer drawn above the regions."""
        return await self._fetch_collection(config.STATES_GEOJSON_URL, "state boundaries")
