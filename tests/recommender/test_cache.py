from recommender.cache import TTLCache, UserThrottle


def test_entries_expire_after_ttl(clock):
    cache = TTLCache(300, clock=clock)
    cache.set("u1", 20, "result")

    clock.advance(299)
    assert cache.get("u1", 20) == "result"
    clock.advance(1)
    assert cache.get("u1", 20) is None
    assert len(cache) == 0


def test_clear_drops_every_count_for_one_user(clock):
    cache = TTLCache(300, clock=clock)
    cache.set("u1", 10, "a")
    cache.set("u1", 20, "b")
    cache.set("u2", 10, "c")

    assert cache.clear("u1") == 2
    assert cache.get("u1", 10) is None
    assert cache.get("u2", 10) == "c"


def test_throttle_window(clock):
    throttle = UserThrottle(1.0, clock=clock)
    assert throttle.retry_after("u1") == 0.0

    throttle.mark("u1")
    clock.advance(0.4)
    assert throttle.retry_after("u1") == 0.6
    assert throttle.retry_after("u2") == 0.0

    clock.advance(0.6)
    assert throttle.retry_after("u1") == 0.0

    throttle.mark("u1")
    throttle.clear("u1")
    assert throttle.retry_after("u1") == 0.0


def test_writes_sweep_expired_entries_of_other_users(clock):
    cache = TTLCache(300, clock=clock)
    for i in range(50):
        cache.set(f"user-{i}", 20, "stale")

    clock.advance(300)
    cache.set("fresh", 20, "new")

    assert len(cache) == 1
    assert cache.get("fresh", 20) == "new"


def test_throttle_forgets_idle_users(clock):
    throttle = UserThrottle(1.0, clock=clock)
    for i in range(50):
        throttle.mark(f"user-{i}")

    clock.advance(1.0)
    throttle.mark("active")

    assert len(throttle) == 1
    assert throttle.retry_after("user-0") == 0.0
