"""Achievement models and the criteria rule variants"""
import json
import logging
from enum import Enum
from datetime import datetime
from typing import Annotated, Any, ClassVar, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from lms_achievements.exceptions import CriteriaValidationError

logger = logging.getLogger(__name__)


class CriteriaType(str, Enum):
    """Criteria kinds the admin UI can author"""
    COMPLETE_LESSON = "complete_lesson"
    COMPLETE_MODULE = "complete_module"
    QUIZ_SCORE = "quiz_score"
    QUIZ_PASSED = "quiz_passed"
    MODULE_SCORE = "module_score"
    LESSONS_COUNT = "lessons_count"
    MODULE_AVERAGE = "module_average"
    LESSONS_PER_DAY = "lessons_per_day"
    STREAK = "streak"


class _Criteria(BaseModel):
    """Common configuration for every criteria variant"""
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    # Variants that need a time-windowed aggregate cannot be decided
    # from a single trigger event.
    deferred: ClassVar[bool] = False


class CompleteLessonCriteria(_Criteria):
    """Completing a lesson (any lesson, or the referenced one)"""
    type: Literal["complete_lesson"] = "complete_lesson"
    lesson_ref: Optional[str] = Field(default=None, alias="lesson_id")


class CompleteModuleCriteria(_Criteria):
    """Completing every lesson of a module (any module, or the referenced one)"""
    type: Literal["complete_module"] = "complete_module"
    module_ref: Optional[str] = Field(default=None, alias="module")


class QuizScoreCriteria(_Criteria):
    """Scoring at least `threshold` on a quiz"""
    type: Literal["quiz_score"] = "quiz_score"
    threshold: float = Field(alias="score", ge=0, le=100)
    quiz_ref: Optional[str] = Field(default=None, alias="quiz_id")


class QuizPassedCriteria(_Criteria):
    """Passing a quiz (any quiz, or the referenced one)"""
    type: Literal["quiz_passed"] = "quiz_passed"
    quiz_ref: Optional[str] = Field(default=None, alias="quiz_id")


class ModuleScoreCriteria(_Criteria):
    """Scoring at least `threshold` on any quiz belonging to a module"""
    type: Literal["module_score"] = "module_score"
    module_ref: str = Field(alias="module", min_length=1)
    threshold: float = Field(alias="score", ge=0, le=100)


class LessonsCountCriteria(_Criteria):
    """Having completed at least `count` lessons in total"""
    type: Literal["lessons_count"] = "lessons_count"
    count: int = Field(ge=1)


class ModuleAverageCriteria(_Criteria):
    type: Literal["module_average"] = "module_average"
    threshold: float = Field(alias="score", ge=0, le=100)
    deferred: ClassVar[bool] = True


class LessonsPerDayCriteria(_Criteria):
    type: Literal["lessons_per_day"] = "lessons_per_day"
    count: int = Field(ge=1)
    deferred: ClassVar[bool] = True


class StreakCriteria(_Criteria):
    type: Literal["streak"] = "streak"
    days: int = Field(ge=1)
    deferred: ClassVar[bool] = True


class UnrecognizedCriteria(_Criteria):
    """
    Criteria payload that failed to parse at catalog load time.

    Carries the raw payload and the reason so operators can fix the rule.
    Never satisfied.
    """
    type: str = "unrecognized"
    raw: Any = None
    reason: str = ""


KnownCriteria = Annotated[
    Union[
        CompleteLessonCriteria,
        CompleteModuleCriteria,
        QuizScoreCriteria,
        QuizPassedCriteria,
        ModuleScoreCriteria,
        LessonsCountCriteria,
        ModuleAverageCriteria,
        LessonsPerDayCriteria,
        StreakCriteria,
    ],
    Field(discriminator="type"),
]

Criteria = Union[
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
]

_criteria_adapter = TypeAdapter(KnownCriteria)

_KNOWN_TYPES = frozenset(t.value for t in CriteriaType)


def parse_criteria(raw: Any, achievement_id: Optional[str] = None) -> Criteria:
    """
    Parse a stored criteria payload into its rule variant.

    Accepts the decoded JSON object or its string form. Anything that is
    not a valid, known variant comes back as UnrecognizedCriteria; the
    CriteriaValidationError behind it is logged as a warning and never
    propagates.

    Args:
        raw: Criteria payload from the achievements table
        achievement_id: Owning achievement, for diagnostics

    Returns:
        Parsed criteria variant
    """
    try:
        return _validate_criteria(raw, achievement_id)
    except CriteriaValidationError as e:
        payload = e.criteria
        criteria_type = payload.get("type") if isinstance(payload, dict) else None
        return UnrecognizedCriteria(
            type=criteria_type if isinstance(criteria_type, str) else "unrecognized",
            raw=payload,
            reason=e.reason,
        )


def _validate_criteria(raw: Any, achievement_id: Optional[str]) -> Criteria:
    payload = raw
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise _malformed(raw, f"criteria is not valid JSON: {e}", achievement_id) from e

    if not isinstance(payload, dict):
        raise _malformed(raw, "criteria must be a JSON object", achievement_id)

    criteria_type = payload.get("type")
    if not isinstance(criteria_type, str) or criteria_type not in _KNOWN_TYPES:
        raise _malformed(payload, f"unknown criteria type: {criteria_type!r}", achievement_id)

    try:
        return _criteria_adapter.validate_python(payload)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise _malformed(payload, f"invalid {criteria_type} criteria: {errors}", achievement_id) from e


def _malformed(raw: Any, reason: str, achievement_id: Optional[str]) -> CriteriaValidationError:
    return CriteriaValidationError(
        message=f"Achievement {achievement_id} has malformed criteria: {reason}",
        achievement_id=achievement_id,
        criteria=raw,
        reason=reason,
        operation="parse_criteria",
    )


class Achievement(BaseModel):
    """Achievement definition"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    criteria: Criteria

    @classmethod
    def from_record(cls, record: dict) -> "Achievement":
        """Build from an achievements row, parsing criteria once"""
        achievement_id = str(record["id"])
        return cls(
            id=achievement_id,
            name=record.get("name") or "",
            description=record.get("description") or "",
            criteria=parse_criteria(record.get("criteria"), achievement_id),
        )

    @property
    def criteria_type(self) -> str:
        return self.criteria.type

    @property
    def is_recognized(self) -> bool:
        return not isinstance(self.criteria, UnrecognizedCriteria)


class UserAchievement(BaseModel):
    """User's earned achievement (created once, never updated)"""
    user_id: str
    achievement_id: str
    earned_at: datetime
