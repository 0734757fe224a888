"""
Census Atlas — In-process runtime counters.

Read by ``/api/health``.  Everything is process-local and starts from zero
on restart.
"""

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from typing import Deque, Dict, Optional, Union

from censusatlas.domain.enums import FailureKind, GeoLevel

Number = Union[int, float]

FAILURE_WINDOW_SECONDS = 3600.0


class _AtlasCounters:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cache: Counter = Counter()
        self._failures: Counter = Counter()
        self._recent_failures: Deque[float] = deque()
        self._stale_discards = 0
        self._loads: Counter = Counter()
        self._last_load_seconds: Dict[str, float] = {}

    def cache_access(self, hit: bool) -> None:
        with self._lock:
            self._cache["hit" if hit else "miss"] += 1

    def fetch_failure(self, kind: FailureKind, ts: Optional[float] = None) -> None:
        ts = time.time() if ts is None else ts
        with self._lock:
            self._failures[FailureKind(kind).value] += 1
            self._recent_failures.append(ts)
            self._expire_locked(time.time())

    def stale_discard(self) -> None:
        with self._lock:
            self._stale_discards += 1

    def load_finished(self, level: GeoLevel, seconds: float) -> None:
        key = GeoLevel(level).value
        with self._lock:
            self._loads[key] += 1
            self._last_load_seconds[key] = seconds

    def snapshot(self) -> Dict[str, Number]:
        with self._lock:
            self._expire_locked(time.time())
            lookups = self._cache["hit"] + self._cache["miss"]
            snap: Dict[str, Number] = {
                "stats_cache_hit_rate": round(self._cache["hit"] / lookups, 4) if lookups else 0.0,
                "stale_loads_discarded": self._stale_discards,
                "fetch_failures_last_hour": len(self._recent_failures),
            }
            for kind in FailureKind:
                snap[f"fetch_failures_{kind.value}"] = self._failures[kind.value]
            for level in GeoLevel:
                snap[f"loads_{level.value}"] = self._loads[level.value]
                if level.value in self._last_load_seconds:
                    snap[f"last_load_seconds_{level.value}"] = round(self._last_load_seconds[level.value], 3)
            return snap

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._failures.clear()
            self._recent_failures.clear()
            self._stale_discards = 0
            self._loads.clear()
            self._last_load_seconds.clear()

    def _expire_locked(self, now: float) -> None:
        cutoff = now - FAILURE_WINDOW_SECONDS
        while self._recent_failures and self._recent_failures[0] < cutoff:
            self._recent_failures.popleft()


_COUNTERS = _AtlasCounters()


def record_cache_access(hit: bool) -> None:
    _COUNTERS.cache_access(hit)


def record_fetch_failure(kind: FailureKind, ts: Optional[float] = None) -> None:
    _COUNTERS.fetch_failure(kind, ts)


def record_stale_discard() -> None:
    _COUNTERS.stale_discard()


def record_load(level: GeoLevel, seconds: float) -> None:
    _COUNTERS.load_finished(level, seconds)


def metrics_snapshot() -> Dict[str, Number]:
    return _COUNTERS.snapshot()


def reset_metrics_for_tests() -> None:
    _COUNTERS.clear()
