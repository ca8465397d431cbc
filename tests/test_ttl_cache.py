from backend.utils.ttl_cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set('news:all', ['a'])

    clock.advance(59)
    assert cache.get('news:all') == ['a']

    clock.advance(1)
    assert cache.get('news:all') is None


def test_get_or_set_only_calls_producer_on_miss():
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)
    calls = []

    def producer():
        calls.append(1)
        return len(calls)

    assert cache.get_or_set('k', producer) == 1
    assert cache.get_or_set('k', producer) == 1
    clock.advance(61)
    assert cache.get_or_set('k', producer) == 2
    assert len(calls) == 2


def test_per_entry_ttl_overrides_default():
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set('short', 1, ttl=5)
    clock.advance(6)
    assert cache.get('short') is None


def test_default_ttl_comes_from_config():
    assert TTLCache().default_ttl == 60


def test_age_delete_and_clear():
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set('a', 1)
    cache.set('b', 2)
    clock.advance(10)
    assert cache.age('a') == 10
    assert cache.age('missing') is None

    cache.delete('a')
    assert cache.get('a') is None
    cache.clear()
    assert cache.get('b') is None


def test_expired_entries_are_swept_on_write():
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)
    for i in range(50):
        cache.set(f"derivatives:X{i}", [])
    assert cache.size() == 50

    clock.advance(61)
    cache.set('derivatives:BTC', [])

    assert cache.size() == 1
    assert cache.get('derivatives:BTC') == []


def test_sweep_keeps_live_entries():
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set('old', 1)
    clock.advance(30)
    cache.set('young', 2)
    clock.advance(31)
    cache.set('new', 3)

    assert cache.size() == 2
    assert cache.get('young') == 2
