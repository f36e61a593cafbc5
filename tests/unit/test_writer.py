"""Unit tests for the award writer"""
import pytest
from unittest.mock import AsyncMock

from lms_achievements.achievements import AwardWriter
from lms_achievements.models import AwardOutcome, UserAchievement


@pytest.mark.asyncio
async def test_award_creates_row(store, fixed_time):
    writer = AwardWriter(store, clock=lambda: fixed_time)

    outcome = await writer.award("user-1", "a1")

    assert outcome == AwardOutcome.AWARDED
    rows = store.earned_rows("user-1")
    assert len(rows) == 1
    assert rows[0].earned_at == fixed_time


@pytest.mark.asyncio
async def test_award_twice_is_noop(store):
    writer = AwardWriter(store)

    assert await writer.award("user-1", "a1") == AwardOutcome.AWARDED
    assert await writer.award("user-1", "a1") == AwardOutcome.ALREADY_EARNED
    assert len(store.earned_rows("user-1")) == 1


@pytest.mark.asyncio
async def test_same_achievement_for_different_users(store):
    writer = AwardWriter(store)

    assert await writer.award("user-1", "a1") == AwardOutcome.AWARDED
    assert await writer.award("user-2", "a1") == AwardOutcome.AWARDED


@pytest.mark.asyncio
async def test_explicit_earned_at(store, fixed_time):
    await AwardWriter(store).award("user-1", "a1", earned_at=fixed_time)
    assert store.earned_rows("user-1")[0].earned_at == fixed_time


@pytest.mark.asyncio
async def test_store_errors_propagate():
    store = AsyncMock()
    store.insert_user_achievement.side_effect = RuntimeError("disk full")

    with pytest.raises(RuntimeError):
        await AwardWriter(store).award("user-1", "a1")


@pytest.mark.asyncio
async def test_award_passes_user_achievement_record(fixed_time):
    store = AsyncMock()
    store.insert_user_achievement.return_value = True

    await AwardWriter(store, clock=lambda: fixed_time).award("user-1", "a1")

    store.insert_user_achievement.assert_awaited_once_with(
        UserAchievement(user_id="user-1", achievement_id="a1", earned_at=fixed_time)
    )
