"""
Trigger Dispatcher

Entry point for the engine. The lesson-completion and quiz-submission
collaborators call in after their own write has committed; evaluation runs
in a background task so the learner-facing action never waits on it and
never fails because of it.

One run:
1. Load the catalog and the user's earned set, keep unearned achievements
2. Evaluate each candidate; an error on one does not stop the others
3. Award the ones that are met (idempotent insert)
4. Emit an AwardedEvent for each new row
5. Hand an EvaluationReport to the report sink
"""

import asyncio
import logging
import time
from typing import Coroutine, Optional

from lms_achievements.achievements.aggregator import ProgressAggregator
from lms_achievements.achievements.catalog import CatalogLoader
from lms_achievements.achievements.evaluator import CriteriaEvaluator
from lms_achievements.achievements.notifier import LoggingNotifier, Notifier
from lms_achievements.achievements.reporting import ReportSink
from lms_achievements.achievements.writer import AwardWriter, utc_now
from lms_achievements.db.store import AchievementStore
from lms_achievements.models.achievement import Achievement
from lms_achievements.models.events import (
    AwardedEvent,
    AwardOutcome,
    EvaluationReport,
    RunStatus,
    TriggerContext,
)
from lms_achievements.models.progress import QuizResult
from lms_achievements.monitoring import record_award, record_evaluation, track_run

logger = logging.getLogger(__name__)


class TriggerDispatcher:
    """Runs achievement evaluation for trigger events"""

    def __init__(
        self,
        store: AchievementStore,
        loader: Optional[CatalogLoader] = None,
        evaluator: Optional[CriteriaEvaluator] = None,
        writer: Optional[AwardWriter] = None,
        notifier: Optional[Notifier] = None,
        sink: Optional[ReportSink] = None
    ):
        self.store = store
        self.loader = loader or CatalogLoader(store)
        self.evaluator = evaluator or CriteriaEvaluator(store, ProgressAggregator(store))
        self.writer = writer or AwardWriter(store)
        self.notifier = notifier or LoggingNotifier()
        self.sink = sink or ReportSink()
        self._tasks: set[asyncio.Task] = set()

    # ============================================
    # Foreground run
    # ============================================

    async def evaluate_and_award(self, context: TriggerContext) -> EvaluationReport:
        """
        Evaluate every unearned achievement for a trigger and award the met ones

        Never raises: load failures give a FAILED report, per-achievement
        failures are collected and give PARTIAL_FAILURE.

        Args:
            context: What the user just did

        Returns:
            EvaluationReport for this run (also sent to the report sink)
        """
        report = EvaluationReport(user_id=context.user_id)
        started = time.perf_counter()

        try:
            with track_run():
                try:
                    candidates = await self.loader.load_candidates(context.user_id)
                except Exception as e:
                    logger.error(
                        f"Could not load achievements for user {context.user_id}: {e}",
                        exc_info=True
                    )
                    report.status = RunStatus.FAILED
                    report.errors.append({"stage": "load", "error": type(e).__name__, "message": str(e)})
                    return report

                report.candidates = len(candidates)
                if not candidates:
                    logger.debug(f"User {context.user_id} has no unearned achievements")
                    report.status = RunStatus.NO_CANDIDATES
                    return report

                for achievement in candidates:
                    await self._process(achievement, context, report)

                report.status = RunStatus.PARTIAL_FAILURE if report.errors else RunStatus.COMPLETED
                return report
        finally:
            report.duration_seconds = time.perf_counter() - started
            self.sink.report(report)

    async def _process(
        self,
        achievement: Achievement,
        context: TriggerContext,
        report: EvaluationReport
    ) -> None:
        criteria_type = achievement.criteria_type

        reason = self.evaluator.skip_reason(achievement)
        if reason:
            self.evaluator.log_skip(achievement, reason)
            report.skipped.append(achievement.id)
            record_evaluation(criteria_type, "skipped")
            return

        try:
            met = await self.evaluator.evaluate(achievement, context)
        except Exception as e:
            logger.error(
                f"Error evaluating achievement {achievement.id} for user {context.user_id}: {e}",
                exc_info=True
            )
            report.errors.append({
                "stage": "evaluate",
                "achievement_id": achievement.id,
                "error": type(e).__name__,
                "message": str(e),
            })
            record_evaluation(criteria_type, "error")
            return

        report.evaluated += 1
        record_evaluation(criteria_type, "met" if met else "not_met")
        if not met:
            return

        earned_at = utc_now()
        try:
            outcome = await self.writer.award(context.user_id, achievement.id, earned_at=earned_at)
        except Exception as e:
            logger.error(
                f"Error awarding achievement {achievement.id} to user {context.user_id}: {e}",
                exc_info=True
            )
            report.errors.append({
                "stage": "award",
                "achievement_id": achievement.id,
                "error": type(e).__name__,
                "message": str(e),
            })
            record_award("error")
            return

        record_award(outcome.value)
        if outcome == AwardOutcome.ALREADY_EARNED:
            report.already_earned.append(achievement.id)
            return

        event = AwardedEvent(
            user_id=context.user_id,
            achievement_id=achievement.id,
            name=achievement.name,
            description=achievement.description,
            earned_at=earned_at,
        )
        report.awarded.append(event)

        try:
            await self.notifier.notify(event)
        except Exception as e:
            logger.warning(
                f"Award notification failed for achievement {achievement.id} "
                f"(user {context.user_id}): {e}",
                exc_info=True
            )

    # ============================================
    # Background runs
    # ============================================

    def submit(self, context: TriggerContext) -> Optional[asyncio.Task]:
        """Schedule a run without waiting for it"""
        return self._spawn(self.evaluate_and_award(context), context.user_id)

    def _spawn(self, coro: Coroutine, user_id: str) -> Optional[asyncio.Task]:
        name = f"achievements:{user_id}"
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            # Called from synchronous code: nothing can run the evaluation
            coro.close()
            logger.error(f"Cannot schedule {name}: no running event loop")
            self.sink.report_crash(name, e, user_id=user_id)
            return None
        task = loop.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_task_done(t, user_id))
        return task

    def _on_task_done(self, task: asyncio.Task, user_id: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Achievement task {task.get_name()} was cancelled")
            return
        error = task.exception()
        if error is not None:
            self.sink.report_crash(task.get_name(), error, user_id=user_id)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight background run (shutdown, tests)"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ============================================
    # Collaborator hooks
    # ============================================

    def on_lesson_completed(
        self,
        user_id: str,
        lesson_id: str,
        module_id: Optional[str] = None
    ) -> Optional[asyncio.Task]:
        """
        Called after a lesson completion has been written

        The owning module is looked up when the caller does not know it.
        """
        async def run() -> Optional[EvaluationReport]:
            resolved = module_id or await self._resolve(self.store.get_lesson_module_id, lesson_id)
            context = TriggerContext(user_id=user_id, lesson_id=lesson_id, module_id=resolved)
            return await self.evaluate_and_award(context)

        return self._spawn(run(), user_id)

    def on_quiz_submitted(
        self,
        user_id: str,
        quiz_id: str,
        score: float,
        passed: bool,
        module_id: Optional[str] = None
    ) -> Optional[asyncio.Task]:
        """Called after a quiz attempt has been written"""
        async def run() -> Optional[EvaluationReport]:
            resolved = module_id or await self._resolve(self.store.get_quiz_module_id, quiz_id)
            context = TriggerContext(
                user_id=user_id,
                module_id=resolved,
                quiz_id=quiz_id,
                quiz_score=score,
                quiz_passed=passed,
            )
            return await self.evaluate_and_award(context)

        return self._spawn(run(), user_id)

    def on_quiz_result(self, result: QuizResult, module_id: Optional[str] = None) -> Optional[asyncio.Task]:
        """Same as on_quiz_submitted, taking the stored QuizResult"""
        return self.on_quiz_submitted(
            result.user_id,
            result.quiz_id,
            result.score,
            result.passed,
            module_id=module_id,
        )

    async def _resolve(self, lookup, ref: str) -> Optional[str]:
        # Missing module context only disables module-scoped criteria
        try:
            return await lookup(ref)
        except Exception as e:
            logger.warning(f"Could not resolve module for {ref}: {e}")
            return None
