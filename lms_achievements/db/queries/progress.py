"""Lesson, module and quiz progress queries (read-only)"""
import logging
from typing import Optional
from lms_achievements.db.connection import db

logger = logging.getLogger(__name__)

COMPLETED_STATUS = "completed"


async def get_module_lesson_ids(module_id: str) -> list[str]:
    """Get ids of all lessons in a module (empty for unknown modules)"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id::text AS id
                FROM lessons
                WHERE module_id = %s
                """,
                (module_id,)
            )
            rows = await cur.fetchall()
            return [row['id'] for row in rows]


async def get_completed_lesson_ids(user_id: str) -> set[str]:
    """Get ids of lessons the user has completed"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT lesson_id::text AS lesson_id
                FROM user_progress
                WHERE user_id = %s
                AND status = %s
                AND lesson_id IS NOT NULL
                """,
                (user_id, COMPLETED_STATUS)
            )
            rows = await cur.fetchall()
            return {row['lesson_id'] for row in rows}


async def get_completed_lesson_progress(user_id: str) -> list[dict]:
    """
    Get the user's completed lesson progress rows

    Returns:
        List of {'user_id', 'lesson_id', 'status', 'completed_at'} ordered by
        completed_at DESC
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT user_id::text AS user_id,
                       lesson_id::text AS lesson_id,
                       status,
                       completed_at
                FROM user_progress
                WHERE user_id = %s
                AND status = %s
                AND lesson_id IS NOT NULL
                ORDER BY completed_at DESC NULLS LAST
                """,
                (user_id, COMPLETED_STATUS)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def get_quiz_module_id(quiz_id: str) -> Optional[str]:
    """
    Get the module that owns a quiz (quiz -> lesson -> module)

    Returns:
        Module id, or None if the quiz, its lesson or its module is missing
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT l.module_id::text AS module_id
                FROM quizzes q
                JOIN lessons l ON l.id = q.lesson_id
                WHERE q.id = %s
                """,
                (quiz_id,)
            )
            row = await cur.fetchone()
            return row['module_id'] if row else None


async def get_lesson_module_id(lesson_id: str) -> Optional[str]:
    """Get the module a lesson belongs to"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT module_id::text AS module_id
                FROM lessons
                WHERE id = %s
                """,
                (lesson_id,)
            )
            row = await cur.fetchone()
            return row['module_id'] if row else None


async def get_modules_with_lessons() -> list[dict]:
    """
    Get all modules with their lesson ids

    Returns:
        List of {'id', 'name', 'order', 'lesson_ids'} ordered by module order
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT m.id::text AS id,
                       m.name,
                       m."order" AS "order",
                       COALESCE(
                           array_agg(l.id::text) FILTER (WHERE l.id IS NOT NULL),
                           '{}'
                       ) AS lesson_ids
                FROM modules m
                LEFT JOIN lessons l ON l.module_id = m.id
                GROUP BY m.id, m.name, m."order"
                ORDER BY m."order", m.name
                """
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]
