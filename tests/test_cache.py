import asyncio
import sys
import time
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from workify.core.cache import (  # noqa: E402
    CacheRegistry,
    TTLCache,
    analytics_key,
    build_cache_registry,
    get_or_compute,
    openai_response_key,
    run_sweeper,
    user_profile_key,
)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class BrokenCache:
    def get(self, key, default=None):
        raise RuntimeError("read failed")

    def set(self, key, value, ttl=None):
        raise RuntimeError("write failed")


class TTLCacheTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = TTLCache(default_ttl=10, max_size=3, clock=self.clock)

    def test_get_returns_value_until_ttl_elapses(self):
        self.cache.set("a", 1)
        self.clock.advance(10)
        self.assertEqual(self.cache.get("a"), 1)
        self.clock.advance(0.001)
        self.assertIsNone(self.cache.get("a"))
        self.assertEqual(self.cache.size(), 0)

    def test_per_entry_ttl_overrides_default(self):
        self.cache.set("short", "x", ttl=1)
        self.cache.set("long", "y")
        self.clock.advance(2)
        self.assertFalse(self.cache.has("short"))
        self.assertTrue(self.cache.has("long"))

    def test_real_clock_expiry(self):
        cache = TTLCache(default_ttl=0.01, max_size=10)
        cache.set("k", "v")
        self.assertEqual(cache.get("k"), "v")
        time.sleep(0.02)
        self.assertIsNone(cache.get("k"))

    def test_get_default_for_missing_key(self):
        self.assertEqual(self.cache.get("missing", "fallback"), "fallback")

    def test_capacity_evicts_first_inserted_entry(self):
        for key in ("a", "b", "c"):
            self.cache.set(key, key)
        self.cache.get("a")
        self.cache.set("d", "d")
        self.assertEqual(self.cache.keys(), ["b", "c", "d"])
        self.assertIsNone(self.cache.get("a"))

    def test_overwrite_keeps_position_and_does_not_evict(self):
        for key in ("a", "b", "c"):
            self.cache.set(key, key)
        self.cache.set("a", "updated")
        self.assertEqual(self.cache.size(), 3)
        self.assertEqual(self.cache.get("a"), "updated")
        self.cache.set("d", "d")
        self.assertEqual(self.cache.keys(), ["b", "c", "d"])

    def test_sweep_removes_only_expired_entries(self):
        self.cache.set("old", 1, ttl=1)
        self.cache.set("new", 2, ttl=100)
        self.clock.advance(5)
        self.assertEqual(self.cache.sweep(), 1)
        self.assertEqual(self.cache.keys(), ["new"])

    def test_delete_and_clear(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2)
        self.assertTrue(self.cache.delete("a"))
        self.assertFalse(self.cache.delete("a"))
        self.cache.clear()
        self.assertEqual(self.cache.size(), 0)

    def test_falsy_values_are_cached(self):
        self.cache.set("zero", 0)
        self.assertTrue(self.cache.has("zero"))
        self.assertEqual(self.cache.get("zero", "default"), 0)

    def test_invalid_capacity_rejected(self):
        with self.assertRaises(ValueError):
            TTLCache(max_size=0)


class CacheKeyTests(unittest.TestCase):
    def test_openai_key_ignores_argument_order(self):
        first = openai_response_key(text="abc", type="skill_extraction")
        second = openai_response_key(type="skill_extraction", text="abc")
        self.assertEqual(first, second)
        self.assertTrue(first.startswith("openai:"))

    def test_openai_key_depends_on_type(self):
        self.assertNotEqual(
            openai_response_key(text="abc", type="skill_extraction"),
            openai_response_key(text="abc", type="similarity"),
        )

    def test_prefixed_keys(self):
        self.assertEqual(user_profile_key("u1"), "profile:u1")
        self.assertEqual(analytics_key("system"), "analytics:system")
        self.assertEqual(analytics_key("user_stats", "u1:3"), "analytics:user_stats:u1:3")

    def test_registry_reads_pipeline_config(self):
        registry = build_cache_registry()
        self.assertEqual(registry.ai.default_ttl, 1800)
        self.assertEqual(registry.ai.max_size, 500)
        self.assertEqual(registry.user.max_size, 1000)
        self.assertEqual(registry.analytics.default_ttl, 300)


class GetOrComputeTests(unittest.IsolatedAsyncioTestCase):
    async def test_producer_runs_once_while_cached(self):
        cache = TTLCache(default_ttl=60)
        calls = []

        async def producer():
            calls.append(1)
            return "value"

        self.assertEqual(await get_or_compute(cache, "k", producer), "value")
        self.assertEqual(await get_or_compute(cache, "k", producer), "value")
        self.assertEqual(len(calls), 1)

    async def test_cache_faults_fall_through_to_producer(self):
        async def producer():
            return 42

        with self.assertLogs("workify.core.cache", level="WARNING"):
            self.assertEqual(await get_or_compute(BrokenCache(), "k", producer), 42)

    async def test_producer_errors_propagate_and_are_not_cached(self):
        cache = TTLCache(default_ttl=60)

        async def failing():
            raise RuntimeError("upstream down")

        with self.assertRaises(RuntimeError):
            await get_or_compute(cache, "k", failing)
        self.assertFalse(cache.has("k"))


class RunSweeperTests(unittest.IsolatedAsyncioTestCase):
    async def test_removes_expired_entries_without_reads_and_stops(self):
        clock = FakeClock()
        registry = CacheRegistry(
            ai=TTLCache(clock=clock),
            user=TTLCache(clock=clock),
            analytics=TTLCache(clock=clock),
        )
        registry.ai.set("stale", 1, ttl=1)
        registry.user.set("fresh", 2, ttl=100)
        clock.advance(5)

        stop_event = asyncio.Event()
        sweeper = asyncio.create_task(run_sweeper(registry, 0.01, stop_event))
        for _ in range(100):
            if registry.ai.size() == 0:
                break
            await asyncio.sleep(0.01)

        self.assertEqual(registry.ai.keys(), [])
        self.assertEqual(registry.user.keys(), ["fresh"])

        stop_event.set()
        await asyncio.wait_for(sweeper, timeout=1)
        self.assertTrue(sweeper.done())


if __name__ == "__main__":
    unittest.main()
