"""
Database queries - re-exported so callers can use 'from lms_achievements.db import queries'.

Module organization:
- achievements.py: Achievement catalog, earned set, award insert
- progress.py: Lessons, modules, quizzes and user progress (read-only)
"""

# Achievement operations
from lms_achievements.db.queries.achievements import (
    get_all_achievements,
    get_earned_achievement_ids,
    insert_user_achievement,
)

# Progress operations
from lms_achievements.db.queries.progress import (
    get_module_lesson_ids,
    get_completed_lesson_ids,
    get_completed_lesson_progress,
    get_quiz_module_id,
    get_lesson_module_id,
    get_modules_with_lessons,
)

__all__ = [
    # Achievements (3 functions)
    "get_all_achievements",
    "get_earned_achievement_ids",
    "insert_user_achievement",

    # Progress (6 functions)
    "get_module_lesson_ids",
    "get_completed_lesson_ids",
    "get_completed_lesson_progress",
    "get_quiz_module_id",
    "get_lesson_module_id",
    "get_modules_with_lessons",
]
