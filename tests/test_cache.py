from __future__ import annotations

import threading
import unittest

from app.cache import TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestTTLCache(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.cache = TTLCache(max_entries=3, clock=self.clock)

    def test_get_returns_value_before_expiry(self) -> None:
        self.cache.set("summary", {"total_records": 3}, 300)
        self.clock.now += 299

        self.assertEqual(self.cache.get("summary"), {"total_records": 3})

    def test_entry_expires(self) -> None:
        self.cache.set("summary", 1, 300)
        self.clock.now += 300

        self.assertIsNone(self.cache.get("summary"))
        self.assertEqual(len(self.cache), 0)

    def test_missing_key(self) -> None:
        self.assertIsNone(self.cache.get("nope"))

    def test_non_positive_ttl_is_not_stored(self) -> None:
        self.cache.set("a", 1, 0)

        self.assertIsNone(self.cache.get("a"))

    def test_oldest_entry_is_evicted_at_capacity(self) -> None:
        for key in ("a", "b", "c", "d"):
            self.cache.set(key, key, 300)

        self.assertIsNone(self.cache.get("a"))
        self.assertEqual(self.cache.get("d"), "d")
        self.assertEqual(len(self.cache), 3)

    def test_expired_entries_are_evicted_first(self) -> None:
        self.cache.set("short", 1, 10)
        self.cache.set("b", 2, 300)
        self.cache.set("c", 3, 300)
        self.clock.now += 20

        self.cache.set("d", 4, 300)

        self.assertEqual(self.cache.get("b"), 2)
        self.assertEqual(self.cache.get("d"), 4)

    def test_overwrite_refreshes_entry(self) -> None:
        self.cache.set("a", 1, 10)
        self.cache.set("a", 2, 300)
        self.clock.now += 100

        self.assertEqual(self.cache.get("a"), 2)

    def test_clear(self) -> None:
        self.cache.set("a", 1, 300)
        self.cache.clear()

        self.assertIsNone(self.cache.get("a"))

    def test_concurrent_writers(self) -> None:
        cache = TTLCache(max_entries=50)

        def worker(offset: int) -> None:
            for index in range(200):
                cache.set(f"k{offset}-{index}", index, 60)
                cache.get(f"k{offset}-{index}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertLessEqual(len(cache), 50)
