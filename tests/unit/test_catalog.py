"""Unit tests for catalog and candidate loading"""
import logging
import pytest
from unittest.mock import AsyncMock

from lms_achievements.achievements import CatalogLoader, TTLCache
from lms_achievements.achievements.catalog import CATALOG_CACHE_KEY


@pytest.fixture
def catalog_store(store):
    store.add_achievement("a1", "First Steps", {"type": "complete_lesson"})
    store.add_achievement("a2", "Graduate", {"type": "complete_module"})
    store.add_achievement("a3", "Broken", {"type": "teleport"})
    return store


@pytest.mark.asyncio
async def test_load_catalog_parses_criteria(catalog_store):
    catalog = await CatalogLoader(catalog_store).load_catalog()

    assert [a.id for a in catalog] == ["a1", "a2", "a3"]
    assert catalog[0].criteria_type == "complete_lesson"
    assert not catalog[2].is_recognized


@pytest.mark.asyncio
async def test_load_candidates_excludes_earned(catalog_store):
    catalog_store.grant_achievement("user-1", "a2")

    candidates = await CatalogLoader(catalog_store).load_candidates("user-1")

    assert [a.id for a in candidates] == ["a1", "a3"]


@pytest.mark.asyncio
async def test_load_candidates_everything_earned(catalog_store):
    for achievement_id in ("a1", "a2", "a3"):
        catalog_store.grant_achievement("user-1", achievement_id)

    assert await CatalogLoader(catalog_store).load_candidates("user-1") == []


@pytest.mark.asyncio
async def test_load_candidates_empty_catalog(store):
    assert await CatalogLoader(store).load_candidates("user-1") == []


@pytest.mark.asyncio
async def test_catalog_cached_but_earned_set_fresh(catalog_store):
    catalog_store.get_all_achievements = AsyncMock(wraps=catalog_store.get_all_achievements)
    catalog_store.get_earned_achievement_ids = AsyncMock(wraps=catalog_store.get_earned_achievement_ids)
    loader = CatalogLoader(catalog_store, TTLCache(ttl=60))

    await loader.load_candidates("user-1")
    catalog_store.grant_achievement("user-1", "a1")
    candidates = await loader.load_candidates("user-1")

    assert catalog_store.get_all_achievements.await_count == 1
    assert catalog_store.get_earned_achievement_ids.await_count == 2
    assert [a.id for a in candidates] == ["a2", "a3"]


@pytest.mark.asyncio
async def test_invalidate_reloads_catalog(catalog_store):
    cache = TTLCache(ttl=60)
    loader = CatalogLoader(catalog_store, cache)

    await loader.load_catalog()
    catalog_store.add_achievement("a4", "Quiz Whiz", {"type": "quiz_passed"})
    assert len(await loader.load_catalog()) == 3

    loader.invalidate()
    assert cache.get(CATALOG_CACHE_KEY) is None
    assert len(await loader.load_catalog()) == 4


@pytest.mark.asyncio
async def test_store_failure_propagates():
    store = AsyncMock()
    store.get_all_achievements.side_effect = RuntimeError("db down")

    with pytest.raises(RuntimeError):
        await CatalogLoader(store).load_candidates("user-1")


@pytest.mark.asyncio
async def test_malformed_rows_dropped_individually(caplog):
    store = AsyncMock()
    store.get_all_achievements.return_value = [
        {"name": "No id", "criteria": {"type": "complete_lesson"}},
        {"id": "a1", "name": {"en": "First Steps"}, "criteria": {"type": "complete_lesson"}},
        {"id": "a2", "name": "Graduate", "description": 42, "criteria": {"type": "complete_module"}},
        {"id": "a3", "name": "Quiz Whiz", "criteria": {"type": "quiz_passed"}},
    ]

    with caplog.at_level(logging.WARNING):
        catalog = await CatalogLoader(store).load_catalog()

    assert [a.id for a in catalog] == ["a3"]
    dropped = [r.getMessage() for r in caplog.records if "Dropping malformed achievement row" in r.getMessage()]
    assert len(dropped) == 3
    assert any("'a1'" in message for message in dropped)


@pytest.mark.asyncio
async def test_non_string_criteria_type_is_unrecognized(store):
    store.add_achievement("bad", "Broken", {"type": ["complete_lesson"]})
    store.add_achievement("worse", "Also Broken", {"type": {"name": "complete_lesson"}})
    store.add_achievement("ok", "First Steps", {"type": "complete_lesson"})

    catalog = await CatalogLoader(store).load_catalog()

    assert [a.id for a in catalog] == ["bad", "worse", "ok"]
    assert [a.is_recognized for a in catalog] == [False, False, True]
    assert catalog[0].criteria_type == "unrecognized"
