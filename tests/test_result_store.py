"""Tests for shareable result persistence and comparison dedup."""

import itertools
import json
import re
from unittest.mock import AsyncMock, Mock

import pytest

from app.core.errors import StoreAppError
from app.schemas.results import ResultDraft, ResultMeta
from app.services.result_store import (
    RESULT_TTL_SECONDS,
    ResultStore,
    canonical_pair,
    comparison_lookup_key,
    generate_hash,
    result_key,
)


def make_draft(tool: str = "terpene-guide", output: dict | None = None) -> ResultDraft:
    return ResultDraft(
        tool=tool,
        input={"terpene": "Myrcene"},
        output=json.dumps(output or {"name": "Myrcene"}),
        meta=ResultMeta(title="Myrcene", description="About myrcene", share_text="Read this"),
    )


@pytest.fixture
def ids():
    counter = itertools.count(1)
    return lambda: f"id{next(counter):06d}"


@pytest.fixture
def results(kv_store, clock, ids) -> ResultStore:
    return ResultStore(kv_store, clock=clock, id_factory=ids)


def test_generate_hash_is_url_safe() -> None:
    hashes = {generate_hash() for _ in range(50)}
    assert len(hashes) == 50
    assert all(re.fullmatch(r"[A-Za-z0-9_-]{8}", h) for h in hashes)


def test_canonical_pair_is_order_and_case_insensitive() -> None:
    assert canonical_pair("Blue Dream", "OG Kush") == canonical_pair("og kush ", "BLUE DREAM")
    assert comparison_lookup_key("Blue Dream", "OG Kush") == "comparison-lookup:blue dream:og kush"


def test_lookup_key_separator_is_escaped_in_names() -> None:
    assert comparison_lookup_key("Kush:Mints", "Zkittlez") != comparison_lookup_key("Kush", "Mints:Zkittlez")
    assert comparison_lookup_key("Kush:Mints", "Zkittlez") == "comparison-lookup:kush%3Amints:zkittlez"
    assert comparison_lookup_key("a%3Ab", "c") != comparison_lookup_key("a:b", "c")


@pytest.mark.asyncio
async def test_store_then_fetch_round_trip(results, kv_store, clock) -> None:
    hash_ = await results.store(make_draft())

    assert hash_ == "id000001"
    assert kv_store.ttl(result_key("terpene-guide", hash_)) == RESULT_TTL_SECONDS

    stored = await results.fetch("terpene-guide", hash_)
    assert stored is not None
    assert stored.hash == hash_
    assert stored.tool == "terpene-guide"
    assert json.loads(stored.output) == {"name": "Myrcene"}
    assert stored.meta.share_text == "Read this"
    assert stored.created_at.timestamp() == clock.return_value


@pytest.mark.asyncio
async def test_wire_format_uses_camel_case(results, kv_store) -> None:
    hash_ = await results.store(make_draft())

    raw = json.loads(await kv_store.get(result_key("terpene-guide", hash_)))
    assert set(raw) == {"tool", "input", "output", "meta", "createdAt", "hash"}
    assert "shareText" in raw["meta"]


@pytest.mark.asyncio
async def test_fetch_unknown_and_wrong_tool(results) -> None:
    hash_ = await results.store(make_draft())

    assert await results.fetch("terpene-guide", "nothere1") is None
    assert await results.fetch("grow-timeline", hash_) is None


@pytest.mark.asyncio
async def test_fetch_after_expiry(results, clock) -> None:
    hash_ = await results.store(make_draft())

    clock.return_value += RESULT_TTL_SECONDS
    assert await results.fetch("terpene-guide", hash_) is None


@pytest.mark.asyncio
async def test_fetch_malformed_payload_is_a_miss(results, kv_store) -> None:
    await kv_store.set(result_key("terpene-guide", "broken01"), "{not json")
    await kv_store.set(result_key("terpene-guide", "broken02"), json.dumps({"tool": "x"}))

    assert await results.fetch("terpene-guide", "broken01") is None
    assert await results.fetch("terpene-guide", "broken02") is None


@pytest.mark.asyncio
async def test_fetch_fills_missing_hash_from_key(results, kv_store) -> None:
    payload = {
        "tool": "terpene-guide",
        "input": {},
        "output": "{}",
        "meta": {"title": "t", "description": "d", "shareText": "s"},
        "createdAt": "2024-01-01T00:00:00Z",
    }
    await kv_store.set(result_key("terpene-guide", "legacy01"), json.dumps(payload))

    stored = await results.fetch("terpene-guide", "legacy01")
    assert stored is not None
    assert stored.hash == "legacy01"


@pytest.mark.asyncio
async def test_comparison_dedup_in_either_order(results) -> None:
    draft = make_draft(tool="strain-compare", output={"summary": "close call"})
    hash_ = await results.store_comparison("Blue Dream", "OG Kush", draft)

    match = await results.find_existing_comparison("og kush", "BLUE DREAM")
    assert match is not None
    assert match.hash == hash_
    assert json.loads(match.result.output) == {"summary": "close call"}

    assert await results.find_existing_comparison("Blue Dream", "Sour Diesel") is None


@pytest.mark.asyncio
async def test_comparison_last_write_wins(results) -> None:
    first = await results.store_comparison("A", "B", make_draft(tool="strain-compare"))
    second = await results.store_comparison("b", "a", make_draft(tool="strain-compare"))

    match = await results.find_existing_comparison("A", "B")
    assert match is not None
    assert match.hash == second
    # The earlier result stays reachable by its own link.
    assert await results.fetch("strain-compare", first) is not None


@pytest.mark.asyncio
async def test_stale_comparison_pointer_is_a_miss(results, kv_store) -> None:
    hash_ = await results.store_comparison("A", "B", make_draft(tool="strain-compare"))
    await kv_store.delete(result_key("strain-compare", hash_))

    assert await results.find_existing_comparison("A", "B") is None


@pytest.mark.asyncio
async def test_list_keys_respects_tool_and_limit(results) -> None:
    stored = [await results.store(make_draft()) for _ in range(5)]
    await results.store(make_draft(tool="grow-timeline"))

    assert sorted(await results.list_keys("terpene-guide")) == sorted(stored)
    assert len(await results.list_keys("terpene-guide", limit=3)) == 3
    assert await results.list_keys("terpene-guide", limit=0) == []
    assert await results.list_keys("cbd-vs-thc") == []


@pytest.mark.asyncio
async def test_disabled_store_degrades_to_misses() -> None:
    results = ResultStore(None)

    assert results.enabled is False
    assert await results.store(make_draft()) is None
    assert await results.store_comparison("A", "B", make_draft(tool="strain-compare")) is None
    assert await results.fetch("terpene-guide", "anything") is None
    assert await results.find_existing_comparison("A", "B") is None
    assert await results.list_keys("terpene-guide") == []


@pytest.mark.asyncio
async def test_store_failure_propagates() -> None:
    store = Mock()
    store.set = AsyncMock(side_effect=StoreAppError(code="store_unreachable", message="down"))

    with pytest.raises(StoreAppError):
        await ResultStore(store).store(make_draft())


@pytest.mark.asyncio
async def test_colon_in_names_does_not_collide(results) -> None:
    first = await results.store_comparison("Kush:Mints", "Zkittlez", make_draft(tool="strain-compare"))
    second = await results.store_comparison("Kush", "Mints:Zkittlez", make_draft(tool="strain-compare"))

    assert first != second
    assert (await results.find_existing_comparison("Zkittlez", "kush:mints")).hash == first
    assert (await results.find_existing_comparison("Kush", "Mints:Zkittlez")).hash == second


@pytest.mark.asyncio
async def test_index_comparison_points_pair_at_hash(results, kv_store) -> None:
    hash_ = await results.store(make_draft(tool="strain-compare"))
    await results.index_comparison("OG Kush", "Blue Dream", hash_)

    assert await kv_store.get(comparison_lookup_key("blue dream", "og kush")) == hash_
    assert kv_store.ttl(comparison_lookup_key("blue dream", "og kush")) == RESULT_TTL_SECONDS
