from builderboard.services import cache as cache_mod
from builderboard.services.cache import ProfilesCache


def test_empty_cache():
    c = ProfilesCache(ttl_seconds=60)
    assert c.get() is None
    assert c.age_seconds() == 0


def test_expires_after_ttl(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(cache_mod.time, "monotonic", lambda: now[0])

    c = ProfilesCache(ttl_seconds=60)
    c.set([{"id": "p1"}])
    now[0] += 59
    assert c.get() == [{"id": "p1"}]
    assert c.age_seconds() == 59

    now[0] += 1
    assert c.get() is None


def test_clear():
    c = ProfilesCache(ttl_seconds=60)
    c.set([])
    # пустой список тоже валидный кэш
    assert c.get() == []
    c.clear()
    assert c.get() is None
