"""Unit tests for database queries (lms_achievements/db/queries)"""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from lms_achievements.db import queries


def mock_connection(fetchone=None, fetchall=None):
    """Build a connection mock whose cursor returns the given rows"""
    mock_cursor = AsyncMock()
    mock_cursor.fetchone.return_value = fetchone
    mock_cursor.fetchall.return_value = fetchall or []

    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__aenter__.return_value = mock_cursor
    mock_conn.commit = AsyncMock()
    return mock_conn, mock_cursor


# ============================================================================
# Achievement Queries
# ============================================================================

@pytest.mark.asyncio
async def test_get_all_achievements():
    rows = [{"id": "a1", "name": "First Steps", "description": "", "criteria": {"type": "complete_lesson"}}]
    mock_conn, mock_cursor = mock_connection(fetchall=rows)

    with patch('lms_achievements.db.queries.achievements.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        result = await queries.get_all_achievements()

        assert result == rows
        assert "FROM achievements" in mock_cursor.execute.call_args[0][0]


@pytest.mark.asyncio
async def test_get_earned_achievement_ids():
    mock_conn, mock_cursor = mock_connection(fetchall=[{"achievement_id": "a1"}, {"achievement_id": "a2"}])

    with patch('lms_achievements.db.queries.achievements.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        result = await queries.get_earned_achievement_ids("user-1")

        assert result == {"a1", "a2"}
        assert mock_cursor.execute.call_args[0][1] == ("user-1",)


@pytest.mark.asyncio
async def test_insert_user_achievement_new():
    """Test awarding an achievement the user does not have"""
    mock_conn, mock_cursor = mock_connection(fetchone={"id": "ua-1"})
    earned_at = datetime(2025, 1, 1, tzinfo=timezone.utc)

    with patch('lms_achievements.db.queries.achievements.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        result = await queries.insert_user_achievement("user-1", "a1", earned_at)

        assert result is True
        sql, params = mock_cursor.execute.call_args[0]
        assert "ON CONFLICT (user_id, achievement_id) DO NOTHING" in sql
        assert params == ("user-1", "a1", earned_at)
        mock_conn.commit.assert_called_once()


@pytest.mark.asyncio
async def test_insert_user_achievement_existing():
    """Test awarding an achievement twice (ON CONFLICT returns no row)"""
    mock_conn, _ = mock_connection(fetchone=None)

    with patch('lms_achievements.db.queries.achievements.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        result = await queries.insert_user_achievement("user-1", "a1", datetime.now(timezone.utc))

        assert result is False


# ============================================================================
# Progress Queries
# ============================================================================

@pytest.mark.asyncio
async def test_get_module_lesson_ids():
    mock_conn, mock_cursor = mock_connection(fetchall=[{"id": "l1"}, {"id": "l2"}])

    with patch('lms_achievements.db.queries.progress.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        result = await queries.get_module_lesson_ids("m1")

        assert result == ["l1", "l2"]
        assert mock_cursor.execute.call_args[0][1] == ("m1",)


@pytest.mark.asyncio
async def test_get_completed_lesson_ids_filters_completed_status():
    mock_conn, mock_cursor = mock_connection(fetchall=[{"lesson_id": "l1"}])

    with patch('lms_achievements.db.queries.progress.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        result = await queries.get_completed_lesson_ids("user-1")

        assert result == {"l1"}
        assert mock_cursor.execute.call_args[0][1] == ("user-1", "completed")


@pytest.mark.asyncio
async def test_get_quiz_module_id_found():
    mock_conn, mock_cursor = mock_connection(fetchone={"module_id": "m1"})

    with patch('lms_achievements.db.queries.progress.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        assert await queries.get_quiz_module_id("q1") == "m1"
        assert "JOIN lessons" in mock_cursor.execute.call_args[0][0]


@pytest.mark.asyncio
async def test_get_quiz_module_id_missing():
    mock_conn, _ = mock_connection(fetchone=None)

    with patch('lms_achievements.db.queries.progress.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        assert await queries.get_quiz_module_id("nope") is None


@pytest.mark.asyncio
async def test_get_lesson_module_id():
    mock_conn, _ = mock_connection(fetchone={"module_id": "m2"})

    with patch('lms_achievements.db.queries.progress.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        assert await queries.get_lesson_module_id("l4") == "m2"


@pytest.mark.asyncio
async def test_get_modules_with_lessons():
    rows = [
        {"id": "m1", "name": "Basics", "order": 1, "lesson_ids": ["l1"]},
        {"id": "m3", "name": "Empty", "order": 3, "lesson_ids": []},
    ]
    mock_conn, _ = mock_connection(fetchall=rows)

    with patch('lms_achievements.db.queries.progress.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        assert await queries.get_modules_with_lessons() == rows
