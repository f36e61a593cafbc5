"""Achievement catalog and award queries"""
import logging
from datetime import datetime
from lms_achievements.db.connection import db

logger = logging.getLogger(__name__)


async def get_all_achievements() -> list[dict]:
    """
    Get all achievement definitions

    The catalog is small and admin-authored, so it is loaded in full.

    Returns:
        List of {'id', 'name', 'description', 'criteria'} rows
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id::text AS id, name, description, criteria
                FROM achievements
                ORDER BY created_at, name
                """
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def get_earned_achievement_ids(user_id: str) -> set[str]:
    """
    Get ids of achievements the user has already earned

    Args:
        user_id: User UUID

    Returns:
        Set of achievement ids
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT achievement_id::text AS achievement_id
                FROM user_achievements
                WHERE user_id = %s
                """,
                (user_id,)
            )
            rows = await cur.fetchall()
            return {row['achievement_id'] for row in rows}


async def insert_user_achievement(user_id: str, achievement_id: str, earned_at: datetime) -> bool:
    """
    Record an earned achievement if the user does not have it yet

    Relies on the unique constraint on (user_id, achievement_id); two
    concurrent inserts for the same pair produce exactly one row.

    Args:
        user_id: User UUID
        achievement_id: Achievement UUID
        earned_at: Award timestamp (UTC)

    Returns:
        True if newly inserted, False if the pair already existed
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO user_achievements (user_id, achievement_id, earned_at)
                VALUES (%s, %s, %s)
                ON CONFLICT (user_id, achievement_id) DO NOTHING
                RETURNING id
                """,
                (user_id, achievement_id, earned_at)
            )
            result = await cur.fetchone()
            await conn.commit()

            return result is not None  # True if inserted, False if already existed
