from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

from workify.core.pipeline_config import get_pipeline_value

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


@dataclass
class CacheEntry(Generic[T]):
    value: T
    created_at: float
    ttl: float


class TTLCache:
    """In-process key/value store with per-entry expiry.

    Capacity eviction drops the first-inserted entry, not the least recently
    read one. Overwriting a key keeps its original insertion position.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be greater than 0")
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._lock = threading.Lock()

    def _is_expired(self, entry: CacheEntry[Any], now: float) -> bool:
        return now - entry.created_at > entry.ttl

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        entry = CacheEntry(
            value=value,
            created_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
            self._entries[key] = entry

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if self._is_expired(entry, self._clock()):
                del self._entries[key]
                return default
            return entry.value

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries.keys())


@dataclass(frozen=True)
class CacheRegistry:
    ai: TTLCache
    user: TTLCache
    analytics: TTLCache

    def all(self) -> tuple[TTLCache, ...]:
        return (self.ai, self.user, self.analytics)


def _build_cache(name: str, default_ttl: float, max_size: int) -> TTLCache:
    return TTLCache(
        default_ttl=float(get_pipeline_value(f"caches.{name}.default_ttl", default_ttl)),
        max_size=int(get_pipeline_value(f"caches.{name}.max_size", max_size)),
    )


def build_cache_registry() -> CacheRegistry:
    return CacheRegistry(
        ai=_build_cache("ai", 30 * 60, 500),
        user=_build_cache("user", 10 * 60, 1000),
        analytics=_build_cache("analytics", 5 * 60, 100),
    )


def sweep_interval() -> float:
    return float(get_pipeline_value("caches.sweep_interval", 60))


async def run_sweeper(registry: CacheRegistry, interval: float, stop_event: asyncio.Event) -> None:
    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
        if stop_event.is_set():
            break
        try:
            removed = sum(cache.sweep() for cache in registry.all())
            if removed:
                logger.debug("cache_sweep removed=%s", removed)
        except Exception as exc:  # pragma: no cover - sweeper must keep running
            logger.warning("cache_sweep_failed: %s", exc)


async def get_or_compute(
    cache: TTLCache,
    key: str,
    producer: Callable[[], Awaitable[T]],
    ttl: float | None = None,
) -> T:
    try:
        cached = cache.get(key, _MISSING)
    except Exception as exc:  # noqa: BLE001 - cache faults fall through to the producer
        logger.warning("cache_read_failed key=%s: %s", key[:48], exc)
        cached = _MISSING

    if cached is not _MISSING:
        return cached

    value = await producer()

    try:
        cache.set(key, value, ttl)
    except Exception as exc:  # noqa: BLE001
        logger.warning("cache_write_failed key=%s: %s", key[:48], exc)
    return value


def stable_hash(parts: dict[str, Any]) -> str:
    encoded = json.dumps(parts, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def openai_response_key(**parts: Any) -> str:
    return f"openai:{stable_hash(parts)}"


def user_profile_key(user_id: str) -> str:
    return f"profile:{user_id}"


def user_intent_key(user_id: str) -> str:
    return f"intent:{user_id}"


def analytics_key(kind: str, params: str | None = None) -> str:
    return f"analytics:{kind}:{params}" if params else f"analytics:{kind}"
