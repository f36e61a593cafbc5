"""
Progress Aggregator

Read-side computations over lessons, modules, quizzes and user progress.
Nothing here mutates state or caches results: concurrent lesson completions
can change a user's completed set between the write that triggered an
evaluation and the evaluation itself, so every answer is recomputed from the
store.
"""

import logging
import math

from lms_achievements.db.store import AchievementStore
from lms_achievements.models.progress import ModuleProgress, ProgressOverview

logger = logging.getLogger(__name__)


def _percentage(done: int, total: int) -> int:
    # Half-up rounding, matching the dashboard
    return math.floor(done / total * 100 + 0.5) if total > 0 else 0


class ProgressAggregator:
    """Computes completion state from the store"""

    def __init__(self, store: AchievementStore):
        self.store = store

    async def is_module_fully_completed(self, user_id: str, module_id: str) -> bool:
        """
        Check whether the user has completed every lesson of a module

        A module with no lessons is never complete. An unknown module has
        no lessons, so it is never complete either.

        Args:
            user_id: User UUID
            module_id: Module UUID

        Returns:
            True iff the module has lessons and all of them are completed
        """
        lesson_ids = set(await self.store.get_module_lesson_ids(module_id))
        if not lesson_ids:
            logger.debug(f"Module {module_id} has no lessons; not complete")
            return False

        completed = await self.store.get_completed_lesson_ids(user_id)
        return lesson_ids <= completed

    async def count_completed_lessons(self, user_id: str) -> int:
        """Count lessons the user has completed"""
        return len(await self.store.get_completed_lesson_ids(user_id))

    async def module_progress(self, user_id: str) -> list[ModuleProgress]:
        """
        Per-module progress for a user, in module order

        Returns:
            One ModuleProgress per module with total/completed lesson counts,
            rounded percentage and the most recent completion time
        """
        modules = await self.store.get_modules_with_lessons()
        progress = await self.store.get_completed_lesson_progress(user_id)
        completed_at = {p.lesson_id: p.completed_at for p in progress}

        result = []
        for module in modules:
            lesson_ids = set(module.lesson_ids)
            done = lesson_ids & completed_at.keys()
            timestamps = [completed_at[lid] for lid in done if completed_at[lid] is not None]
            last_activity = max(timestamps) if timestamps else None

            result.append(ModuleProgress(
                module_id=module.id,
                name=module.name,
                total_lessons=len(lesson_ids),
                completed_lessons=len(done),
                percentage=_percentage(len(done), len(lesson_ids)),
                last_activity=last_activity,
            ))

        return result

    async def progress_overview(self, user_id: str) -> ProgressOverview:
        """
        Dashboard summary: overall lesson percentage, completed modules and
        earned achievements
        """
        modules = await self.module_progress(user_id)
        total_lessons = sum(m.total_lessons for m in modules)
        completed_lessons = sum(m.completed_lessons for m in modules)

        achievements = await self.store.get_all_achievements()
        catalog_ids = {str(a["id"]) for a in achievements}
        earned = await self.store.get_earned_achievement_ids(user_id)

        return ProgressOverview(
            overall_percentage=_percentage(completed_lessons, total_lessons),
            completed_modules=sum(1 for m in modules if m.is_completed),
            total_modules=len(modules),
            unlocked_achievements=len(earned & catalog_ids),
            total_achievements=len(catalog_ids),
        )
