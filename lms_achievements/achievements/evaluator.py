"""
Criteria Evaluator

Decides whether one achievement's criteria are satisfied by a trigger event.
Holds no state of its own; aggregate questions go to the ProgressAggregator
and quiz ownership to the store, both read fresh each time.
"""

import logging
from typing import Optional

from lms_achievements.achievements.aggregator import ProgressAggregator
from lms_achievements.db.store import AchievementStore
from lms_achievements.models.achievement import (
    Achievement,
    CompleteLessonCriteria,
    CompleteModuleCriteria,
    LessonsCountCriteria,
    ModuleScoreCriteria,
    QuizPassedCriteria,
    QuizScoreCriteria,
    UnrecognizedCriteria,
)
from lms_achievements.models.events import TriggerContext

logger = logging.getLogger(__name__)


def _matches(ref, value) -> bool:
    """An absent reference matches anything; otherwise ids must be equal"""
    return ref is None or str(ref) == str(value)


class CriteriaEvaluator:
    """Evaluates achievement criteria against a trigger context"""

    def __init__(self, store: AchievementStore, aggregator: ProgressAggregator):
        self.store = store
        self.aggregator = aggregator

    def skip_reason(self, achievement: Achievement) -> Optional[str]:
        """Why an achievement cannot be decided from a single event, or None"""
        criteria = achievement.criteria
        if isinstance(criteria, UnrecognizedCriteria):
            return f"unrecognized criteria ({criteria.reason})"
        if criteria.deferred:
            return f"'{criteria.type}' needs a time-windowed aggregate and is not evaluated per event"
        return None

    def can_evaluate(self, achievement: Achievement) -> bool:
        return self.skip_reason(achievement) is None

    def log_skip(self, achievement: Achievement, reason: str) -> None:
        level = logging.WARNING if not achievement.is_recognized else logging.INFO
        logger.log(level, f"Skipping achievement {achievement.id} ({achievement.name}): {reason}")

    async def evaluate(self, achievement: Achievement, context: TriggerContext) -> bool:
        """
        Check if the trigger satisfies an achievement's criteria

        Callers filter with skip_reason() first; unrecognized and deferred
        criteria that reach here are simply not met.

        Args:
            achievement: Candidate achievement with parsed criteria
            context: What the user just did

        Returns:
            True if the achievement should be awarded
        """
        criteria = achievement.criteria

        if isinstance(criteria, CompleteLessonCriteria):
            return self._check_complete_lesson(criteria, context)

        elif isinstance(criteria, CompleteModuleCriteria):
            return await self._check_complete_module(criteria, context)

        elif isinstance(criteria, QuizScoreCriteria):
            return self._check_quiz_score(criteria, context)

        elif isinstance(criteria, QuizPassedCriteria):
            return self._check_quiz_passed(criteria, context)

        elif isinstance(criteria, ModuleScoreCriteria):
            return await self._check_module_score(criteria, context)

        elif isinstance(criteria, LessonsCountCriteria):
            return await self._check_lessons_count(criteria, context)

        logger.warning(f"No evaluator for criteria type '{criteria.type}' on achievement {achievement.id}")
        return False

    # ============================================
    # Criteria checks
    # ============================================

    def _check_complete_lesson(self, criteria: CompleteLessonCriteria, context: TriggerContext) -> bool:
        """Any lesson completion, or the referenced lesson"""
        if not context.lesson_id:
            return False
        return _matches(criteria.lesson_ref, context.lesson_id)

    async def _check_complete_module(self, criteria: CompleteModuleCriteria, context: TriggerContext) -> bool:
        """The triggering module (or the referenced one) is now fully completed"""
        if not context.module_id:
            return False
        if not _matches(criteria.module_ref, context.module_id):
            return False
        return await self.aggregator.is_module_fully_completed(context.user_id, context.module_id)

    def _check_quiz_score(self, criteria: QuizScoreCriteria, context: TriggerContext) -> bool:
        """Triggering quiz score meets the threshold"""
        if not context.quiz_id or context.quiz_score is None:
            return False
        if not _matches(criteria.quiz_ref, context.quiz_id):
            return False
        return context.quiz_score >= criteria.threshold

    def _check_quiz_passed(self, criteria: QuizPassedCriteria, context: TriggerContext) -> bool:
        """Triggering quiz submission passed"""
        if not context.quiz_id or context.quiz_passed is not True:
            return False
        return _matches(criteria.quiz_ref, context.quiz_id)

    async def _check_module_score(self, criteria: ModuleScoreCriteria, context: TriggerContext) -> bool:
        """Triggering quiz belongs to the referenced module and meets the threshold"""
        if not context.quiz_id or not context.module_id or context.quiz_score is None:
            return False
        if context.quiz_score < criteria.threshold:
            return False

        owning_module = await self.store.get_quiz_module_id(context.quiz_id)
        if owning_module is None:
            logger.debug(f"Quiz {context.quiz_id} has no owning module")
            return False
        return str(owning_module) == criteria.module_ref

    async def _check_lessons_count(self, criteria: LessonsCountCriteria, context: TriggerContext) -> bool:
        """User has completed at least `count` lessons (checked on lesson completion)"""
        if not context.lesson_id:
            return False
        completed = await self.aggregator.count_completed_lessons(context.user_id)
        return completed >= criteria.count
