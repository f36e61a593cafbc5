"""
Award Writer

Records an earned achievement exactly once. The store's unique constraint on
(user_id, achievement_id) is the only guard: when two runs race to award the
same achievement, one insert wins and the other sees the conflict and no-ops.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from lms_achievements.db.store import AchievementStore
from lms_achievements.models.achievement import UserAchievement
from lms_achievements.models.events import AwardOutcome

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AwardWriter:
    """Idempotent insert of UserAchievement rows"""

    def __init__(self, store: AchievementStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self._clock = clock

    async def award(
        self,
        user_id: str,
        achievement_id: str,
        earned_at: Optional[datetime] = None
    ) -> AwardOutcome:
        """
        Award an achievement to a user

        Args:
            user_id: User UUID
            achievement_id: Achievement UUID
            earned_at: Award time, defaults to now (UTC)

        Returns:
            AWARDED if a row was created, ALREADY_EARNED on a uniqueness conflict

        Raises:
            DatabaseError: any store failure other than the uniqueness conflict
        """
        record = UserAchievement(
            user_id=user_id,
            achievement_id=achievement_id,
            earned_at=earned_at or self._clock(),
        )
        inserted = await self.store.insert_user_achievement(record)

        if inserted:
            logger.info(f"User {user_id} earned achievement {achievement_id}")
            return AwardOutcome.AWARDED

        logger.info(f"User {user_id} already has achievement {achievement_id}")
        return AwardOutcome.ALREADY_EARNED
