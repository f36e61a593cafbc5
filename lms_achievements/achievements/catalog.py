"""
Catalog & Earned-Set Loader

Loads achievement definitions (parsing criteria once) and works out which
ones a user has not earned yet.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from lms_achievements.achievements.cache import TTLCache
from lms_achievements.db.store import AchievementStore
from lms_achievements.models.achievement import Achievement

logger = logging.getLogger(__name__)

CATALOG_CACHE_KEY = "achievement_catalog"


class CatalogLoader:
    """
    Loads the achievement catalog and a user's candidate set

    The parsed catalog may be cached in an injected TTLCache; the earned set
    is read fresh on every call.
    """

    def __init__(self, store: AchievementStore, cache: Optional[TTLCache] = None):
        self.store = store
        self.cache = cache

    async def load_catalog(self) -> list[Achievement]:
        """Load and parse all achievement definitions"""
        if self.cache is not None:
            return await self.cache.get_or_load(CATALOG_CACHE_KEY, self._fetch_catalog)
        return await self._fetch_catalog()

    async def _fetch_catalog(self) -> list[Achievement]:
        rows = await self.store.get_all_achievements()
        catalog = []
        for row in rows:
            try:
                catalog.append(Achievement.from_record(row))
            except (KeyError, TypeError, AttributeError, ValidationError) as e:
                row_id = row.get("id") if isinstance(row, dict) else None
                logger.warning(f"Dropping malformed achievement row {row_id!r}: {e}")

        unrecognized = [a.id for a in catalog if not a.is_recognized]
        if unrecognized:
            logger.warning(
                f"Loaded {len(catalog)} achievements; {len(unrecognized)} have "
                f"unrecognized criteria and will never be awarded: {', '.join(unrecognized)}"
            )
        else:
            logger.debug(f"Loaded {len(catalog)} achievements")
        return catalog

    async def load_candidates(self, user_id: str) -> list[Achievement]:
        """
        Achievements the user has not earned yet, in catalog order

        Args:
            user_id: User UUID

        Returns:
            Catalog minus the user's earned achievements
        """
        catalog = await self.load_catalog()
        earned = await self.store.get_earned_achievement_ids(user_id)
        candidates = [a for a in catalog if a.id not in earned]

        logger.debug(
            f"User {user_id}: {len(earned)} earned, {len(candidates)} candidates "
            f"of {len(catalog)} achievements"
        )
        return candidates

    def invalidate(self) -> None:
        """Drop the cached catalog (call after admin edits)"""
        if self.cache is not None:
            self.cache.invalidate(CATALOG_CACHE_KEY)
