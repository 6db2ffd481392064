from commish.cache import MemoryTTLCache, SqliteTTLCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


async def test_memory_cache_expires_on_read():
    clock = FakeClock()
    cache = MemoryTTLCache(clock)
    await cache.set("a", {"x": 1}, 60)
    assert await cache.get("a") == {"x": 1}
    clock.now += 59
    assert await cache.get("a") == {"x": 1}
    clock.now += 1
    assert await cache.get("a") is None
    assert await cache.get("missing") is None


async def test_memory_cache_overwrite_and_clear():
    cache = MemoryTTLCache(FakeClock())
    await cache.set("a", 1, 60)
    await cache.set("a", 2, 60)
    assert await cache.get("a") == 2
    cache.clear()
    assert await cache.get("a") is None


async def test_sqlite_cache_round_trips_json(db_path):
    clock = FakeClock()
    cache = SqliteTTLCache(db_path, clock)
    await cache.set("https://sleeper.test/v1/state/nfl", {"season": "2026", "week": 7}, 600)
    assert await cache.get("https://sleeper.test/v1/state/nfl") == {"season": "2026", "week": 7}
    clock.now += 600
    assert await cache.get("https://sleeper.test/v1/state/nfl") is None


async def test_sqlite_cache_is_shared_between_instances(db_path):
    clock = FakeClock()
    await SqliteTTLCache(db_path, clock).set("k", [1, 2, 3], 60)
    assert await SqliteTTLCache(db_path, clock).get("k") == [1, 2, 3]
