"""Unit tests for the in-memory key-value store."""

import pytest


@pytest.mark.asyncio
async def test_get_set_delete(kv_store) -> None:
    assert await kv_store.get("k") is None

    await kv_store.set("k", "v")
    assert await kv_store.get("k") == "v"

    await kv_store.delete("k")
    assert await kv_store.get("k") is None


@pytest.mark.asyncio
async def test_ttl_expiry(kv_store, clock) -> None:
    await kv_store.setex("k", "v", 60)

    clock.return_value += 59
    assert await kv_store.get("k") == "v"

    clock.return_value += 1
    assert await kv_store.get("k") is None


@pytest.mark.asyncio
async def test_setex_rejects_non_positive_ttl(kv_store) -> None:
    with pytest.raises(ValueError):
        await kv_store.setex("k", "v", 0)


@pytest.mark.asyncio
async def test_keys_matches_glob_and_skips_expired(kv_store, clock) -> None:
    await kv_store.set("result:terpene-guide:aaa", "1")
    await kv_store.set("result:terpene-guide:bbb", "1", ttl_seconds=10)
    await kv_store.set("result:grow-timeline:ccc", "1")

    keys = await kv_store.keys("result:terpene-guide:*")
    assert sorted(keys) == ["result:terpene-guide:aaa", "result:terpene-guide:bbb"]

    clock.return_value += 10
    assert await kv_store.keys("result:terpene-guide:*") == ["result:terpene-guide:aaa"]


@pytest.mark.asyncio
async def test_incr_sets_ttl_only_on_creation(kv_store, clock) -> None:
    assert await kv_store.incr("c", ttl_seconds=100) == 1

    clock.return_value += 50
    assert await kv_store.incr("c", ttl_seconds=100) == 2
    assert kv_store.ttl("c") == 50

    assert await kv_store.decr("c") == 1

    clock.return_value += 50
    assert await kv_store.get("c") is None
    assert await kv_store.incr("c", ttl_seconds=100) == 1


@pytest.mark.asyncio
async def test_clear(kv_store) -> None:
    await kv_store.set("a", "1")
    kv_store.clear()
    assert await kv_store.keys("*") == []
