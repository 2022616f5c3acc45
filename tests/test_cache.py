"""
Tests for the TTL cache.
"""

import unittest

from CityRank.cache import TTLCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestTTLCache(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.cache = TTLCache(60, clock=self.clock, name="test")

    def test_put_and_get(self):
        self.cache.put("FR", ["IDF"])
        self.assertEqual(self.cache.get("FR"), ["IDF"])
        self.assertEqual(len(self.cache), 1)

    def test_missing_key(self):
        self.assertIsNone(self.cache.get("DE"))

    def test_entry_valid_before_ttl(self):
        self.cache.put("FR", "value")
        self.clock.advance(59.9)
        self.assertEqual(self.cache.get("FR"), "value")

    def test_entry_expires_at_ttl(self):
        self.cache.put("FR", "value")
        self.clock.advance(60)
        self.assertIsNone(self.cache.get("FR"))
        self.assertEqual(len(self.cache), 0)

    def test_put_refreshes_entry(self):
        self.cache.put("FR", "old")
        self.clock.advance(45)
        self.cache.put("FR", "new")
        self.clock.advance(45)
        self.assertEqual(self.cache.get("FR"), "new")

    def test_put_purges_expired_entries(self):
        for i in range(100):
            self.cache.put(f"10.0.0.{i}", "location")
        self.clock.advance(30)
        self.cache.put("10.0.1.1", "location")
        self.clock.advance(30)

        self.cache.put("10.0.1.2", "location")
        self.assertEqual(len(self.cache), 2)
        self.assertEqual(self.cache.get("10.0.1.1"), "location")

    def test_refreshed_entry_survives_purge(self):
        self.cache.put("FR", "old")
        self.cache.put("DE", "value")
        self.clock.advance(45)
        self.cache.put("FR", "new")
        self.clock.advance(20)

        self.cache.put("IT", "value")
        self.assertEqual(len(self.cache), 2)
        self.assertEqual(self.cache.get("FR"), "new")
        self.assertIsNone(self.cache.get("DE"))

    def test_clear(self):
        self.cache.put("FR", 1)
        self.cache.put("DE", 2)
        self.cache.clear()
        self.assertEqual(len(self.cache), 0)
        self.assertIsNone(self.cache.get("FR"))

    def test_stats(self):
        self.cache.put("FR", 1)
        self.cache.get("FR")
        self.cache.get("FR")
        self.cache.get("DE")

        stats = self.cache.stats()
        self.assertEqual(stats["name"], "test")
        self.assertEqual(stats["hits"], 2)
        self.assertEqual(stats["misses"], 1)
        self.assertEqual(stats["size"], 1)
        self.assertEqual(stats["ttl_seconds"], 60)

    def test_invalid_ttl(self):
        with self.assertRaises(ValueError):
            TTLCache(0)
        with self.assertRaises(ValueError):
            TTLCache(-1)


if __name__ == '__main__':
    unittest.main()
