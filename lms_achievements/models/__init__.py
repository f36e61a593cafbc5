"""Data models for the achievement engine"""
from lms_achievements.models.achievement import (
    Achievement,
    Criteria,
    CriteriaType,
    CompleteLessonCriteria,
    CompleteModuleCriteria,
    QuizScoreCriteria,
    QuizPassedCriteria,
    ModuleScoreCriteria,
    LessonsCountCriteria,
    ModuleAverageCriteria,
    LessonsPerDayCriteria,
    StreakCriteria,
    UnrecognizedCriteria,
    UserAchievement,
    parse_criteria,
)
from lms_achievements.models.progress import (
    LessonStatus,
    LessonProgress,
    Module,
    Quiz,
    QuizResult,
    ModuleProgress,
    ProgressOverview,
)
from lms_achievements.models.events import (
    TriggerContext,
    AwardOutcome,
    AwardedEvent,
    RunStatus,
    EvaluationReport,
)

__all__ = [
    "Achievement",
    "Criteria",
    "CriteriaType",
    "CompleteLessonCriteria",
    "CompleteModuleCriteria",
    "QuizScoreCriteria",
    "QuizPassedCriteria",
    "ModuleScoreCriteria",
    "LessonsCountCriteria",
    "ModuleAverageCriteria",
    "LessonsPerDayCriteria",
    "StreakCriteria",
    "UnrecognizedCriteria",
    "UserAchievement",
    "parse_criteria",
    "LessonStatus",
    "LessonProgress",
    "Module",
    "Quiz",
    "QuizResult",
    "ModuleProgress",
    "ProgressOverview",
    "TriggerContext",
    "AwardOutcome",
    "AwardedEvent",
    "RunStatus",
    "EvaluationReport",
]
