"""Learning content and progress models"""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class LessonStatus(str, Enum):
    """Lesson progress status"""
    NOT_STARTED = "not_started"
    COMPLETED = "completed"


class LessonProgress(BaseModel):
    """A user's progress on one lesson"""
    user_id: str
    lesson_id: str
    status: LessonStatus = LessonStatus.NOT_STARTED
    completed_at: Optional[datetime] = None


class Module(BaseModel):
    """Module with its lesson ids (may be empty)"""
    id: str
    name: str = ""
    order: int = 0
    lesson_ids: list[str] = Field(default_factory=list)


class Quiz(BaseModel):
    """Quiz attached to a lesson"""
    id: str
    lesson_id: Optional[str] = None
    pass_threshold: float = 70


class QuizResult(BaseModel):
    """One submission of a quiz; several may exist per (user, quiz)"""
    user_id: str
    quiz_id: str
    score: float
    passed: bool
    created_at: Optional[datetime] = None


class ModuleProgress(BaseModel):
    """Per-module completion summary for a user"""
    module_id: str
    name: str
    total_lessons: int
    completed_lessons: int
    percentage: int
    last_activity: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.total_lessons > 0 and self.completed_lessons == self.total_lessons


class ProgressOverview(BaseModel):
    """Dashboard-level progress summary for a user"""
    overall_percentage: int
    completed_modules: int
    total_modules: int
    unlocked_achievements: int
    total_achievements: int
