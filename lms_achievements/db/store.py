"""
Store interface used by the achievement engine

The engine reads achievements, earned sets and lesson/module/quiz progress,
and issues exactly one kind of write: insert-if-absent of a UserAchievement.

Implementations:
- PostgresStore: backed by the psycopg pool and the query functions
- InMemoryStore: dict-backed, enforces the same (user_id, achievement_id)
  uniqueness; used by tests and local runs
"""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

import psycopg

from lms_achievements.db import queries
from lms_achievements.exceptions import wrap_external_exception
from lms_achievements.models.achievement import UserAchievement
from lms_achievements.models.progress import LessonProgress, LessonStatus, Module, Quiz

logger = logging.getLogger(__name__)

T = TypeVar('T')


class AchievementStore(Protocol):
    """Read/write operations the engine needs from the data store"""

    async def get_all_achievements(self) -> list[dict]: ...

    async def get_earned_achievement_ids(self, user_id: str) -> set[str]: ...

    async def get_module_lesson_ids(self, module_id: str) -> list[str]: ...

    async def get_completed_lesson_ids(self, user_id: str) -> set[str]: ...

    async def get_completed_lesson_progress(self, user_id: str) -> list[LessonProgress]: ...

    async def get_quiz_module_id(self, quiz_id: str) -> Optional[str]: ...

    async def get_lesson_module_id(self, lesson_id: str) -> Optional[str]: ...

    async def get_modules_with_lessons(self) -> list[Module]: ...

    async def insert_user_achievement(self, record: UserAchievement) -> bool: ...


class PostgresStore:
    """AchievementStore backed by PostgreSQL"""

    async def _run(self, operation: str, func: Callable[..., Awaitable[T]], *args) -> T:
        try:
            return await func(*args)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation=operation,
                context={"args": [str(a) for a in args]}
            ) from e

    async def get_all_achievements(self) -> list[dict]:
        return await self._run("get_all_achievements", queries.get_all_achievements)

    async def get_earned_achievement_ids(self, user_id: str) -> set[str]:
        return await self._run("get_earned_achievement_ids", queries.get_earned_achievement_ids, user_id)

    async def get_module_lesson_ids(self, module_id: str) -> list[str]:
        return await self._run("get_module_lesson_ids", queries.get_module_lesson_ids, module_id)

    async def get_completed_lesson_ids(self, user_id: str) -> set[str]:
        return await self._run("get_completed_lesson_ids", queries.get_completed_lesson_ids, user_id)

    async def get_completed_lesson_progress(self, user_id: str) -> list[LessonProgress]:
        rows = await self._run(
            "get_completed_lesson_progress", queries.get_completed_lesson_progress, user_id
        )
        return [LessonProgress(**row) for row in rows]

    async def get_quiz_module_id(self, quiz_id: str) -> Optional[str]:
        return await self._run("get_quiz_module_id", queries.get_quiz_module_id, quiz_id)

    async def get_lesson_module_id(self, lesson_id: str) -> Optional[str]:
        return await self._run("get_lesson_module_id", queries.get_lesson_module_id, lesson_id)

    async def get_modules_with_lessons(self) -> list[Module]:
        rows = await self._run("get_modules_with_lessons", queries.get_modules_with_lessons)
        return [
            Module(
                id=row["id"],
                name=row.get("name") or "",
                order=row.get("order") or 0,
                lesson_ids=row.get("lesson_ids") or [],
            )
            for row in rows
        ]

    async def insert_user_achievement(self, record: UserAchievement) -> bool:
        return await self._run(
            "insert_user_achievement",
            queries.insert_user_achievement,
            record.user_id,
            record.achievement_id,
            record.earned_at
        )


class InMemoryStore:
    """
    In-memory AchievementStore

    Achievements and lessons are plain dict rows shaped like the database
    tables; modules, quizzes, progress and earned achievements are held as
    models. The (user_id, achievement_id) pair is unique, matching the table
    constraint.
    """

    def __init__(self):
        self.achievements: dict[str, dict] = {}
        self.modules: dict[str, Module] = {}
        self.lessons: dict[str, dict] = {}
        self.quizzes: dict[str, Quiz] = {}
        self.progress: dict[tuple[str, str], LessonProgress] = {}
        self.user_achievements: dict[tuple[str, str], UserAchievement] = {}

    # Seeding helpers

    def add_achievement(self, achievement_id: str, name: str, criteria, description: str = "") -> None:
        self.achievements[achievement_id] = {
            "id": achievement_id,
            "name": name,
            "description": description,
            "criteria": criteria,
        }

    def add_module(self, module_id: str, name: str = "", order: int = 0) -> None:
        self.modules[module_id] = Module(id=module_id, name=name or module_id, order=order)

    def add_lesson(self, lesson_id: str, module_id: Optional[str]) -> None:
        self.lessons[lesson_id] = {"id": lesson_id, "module_id": module_id}

    def add_quiz(self, quiz_id: str, lesson_id: Optional[str], pass_threshold: float = 70) -> None:
        self.quizzes[quiz_id] = Quiz(id=quiz_id, lesson_id=lesson_id, pass_threshold=pass_threshold)

    def complete_lesson(self, user_id: str, lesson_id: str, completed_at: Optional[datetime] = None) -> None:
        """Mark a lesson completed (what the lesson-completion collaborator does)"""
        self.progress[(user_id, lesson_id)] = LessonProgress(
            user_id=user_id,
            lesson_id=lesson_id,
            status=LessonStatus.COMPLETED,
            completed_at=completed_at,
        )

    def grant_achievement(self, user_id: str, achievement_id: str, earned_at: Optional[datetime] = None) -> None:
        """Seed an already-earned achievement"""
        self.user_achievements[(user_id, achievement_id)] = UserAchievement(
            user_id=user_id,
            achievement_id=achievement_id,
            earned_at=earned_at or datetime.now(timezone.utc),
        )

    def earned_rows(self, user_id: str) -> list[UserAchievement]:
        return [row for (uid, _), row in self.user_achievements.items() if uid == user_id]

    # AchievementStore

    async def get_all_achievements(self) -> list[dict]:
        return [dict(row) for row in self.achievements.values()]

    async def get_earned_achievement_ids(self, user_id: str) -> set[str]:
        return {aid for (uid, aid) in self.user_achievements if uid == user_id}

    async def get_module_lesson_ids(self, module_id: str) -> list[str]:
        return [lid for lid, lesson in self.lessons.items() if lesson["module_id"] == module_id]

    async def get_completed_lesson_ids(self, user_id: str) -> set[str]:
        return {p.lesson_id for p in await self.get_completed_lesson_progress(user_id)}

    async def get_completed_lesson_progress(self, user_id: str) -> list[LessonProgress]:
        rows = [
            p for (uid, _), p in self.progress.items()
            if uid == user_id and p.status == LessonStatus.COMPLETED
        ]
        # Most recent first, rows without a timestamp last
        rows.sort(key=lambda p: (p.completed_at is not None, p.completed_at or datetime.min), reverse=True)
        return rows

    async def get_quiz_module_id(self, quiz_id: str) -> Optional[str]:
        quiz = self.quizzes.get(quiz_id)
        if not quiz or not quiz.lesson_id:
            return None
        return await self.get_lesson_module_id(quiz.lesson_id)

    async def get_lesson_module_id(self, lesson_id: str) -> Optional[str]:
        lesson = self.lessons.get(lesson_id)
        return lesson["module_id"] if lesson else None

    async def get_modules_with_lessons(self) -> list[Module]:
        modules = []
        for module in sorted(self.modules.values(), key=lambda m: (m.order, m.name)):
            lesson_ids = await self.get_module_lesson_ids(module.id)
            modules.append(module.model_copy(update={"lesson_ids": lesson_ids}))
        return modules

    async def insert_user_achievement(self, record: UserAchievement) -> bool:
        key = (record.user_id, record.achievement_id)
        if key in self.user_achievements:
            return False
        self.user_achievements[key] = record
        logger.debug(f"Stored achievement {record.achievement_id} for user {record.user_id} in memory")
        return True
