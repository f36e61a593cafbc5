"""Trigger, award and run-report models"""
from enum import Enum
from typing import Any, Optional
from datetime import datetime
from dataclasses import dataclass, field
from pydantic import BaseModel, ConfigDict, Field


class TriggerContext(BaseModel):
    """
    What the user just did, passed by the lesson-completion and
    quiz-submission collaborators after their own write has committed.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    lesson_id: Optional[str] = None
    module_id: Optional[str] = None
    quiz_id: Optional[str] = None
    quiz_score: Optional[float] = None
    quiz_passed: Optional[bool] = None


class AwardOutcome(str, Enum):
    """Result of an award attempt"""
    AWARDED = "awarded"
    ALREADY_EARNED = "already_earned"


class AwardedEvent(BaseModel):
    """Emitted once per newly created UserAchievement; delivery is best-effort"""
    user_id: str
    achievement_id: str
    name: str
    description: str = ""
    earned_at: Optional[datetime] = None


class RunStatus(str, Enum):
    """Overall status of one evaluation run"""
    NO_CANDIDATES = "no_candidates"
    COMPLETED = "completed"
    PARTIAL_FAILURE = "partial_failure"
    FAILED = "failed"


@dataclass
class EvaluationReport:
    """Outcome of one evaluation run, handed to the report sink"""
    user_id: str
    status: RunStatus = RunStatus.COMPLETED
    candidates: int = 0
    evaluated: int = 0
    awarded: list[AwardedEvent] = field(default_factory=list)
    already_earned: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def awarded_ids(self) -> list[str]:
        return [event.achievement_id for event in self.awarded]

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "status": self.status.value,
            "candidates": self.candidates,
            "evaluated": self.evaluated,
            "awarded": self.awarded_ids,
            "already_earned": self.already_earned,
            "skipped": self.skipped,
            "errors": self.errors,
            "duration_seconds": round(self.duration_seconds, 4),
        }
