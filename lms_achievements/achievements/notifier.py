"""
Award notifications

The engine hands every new award to a Notifier. Delivery is best-effort:
the durable fact of the award already lives in user_achievements.
"""

import logging
from typing import Protocol

from lms_achievements.models.events import AwardedEvent

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Receives awarded-achievement events (e.g. a UI toast bridge)"""

    async def notify(self, event: AwardedEvent) -> None: ...


class LoggingNotifier:
    """Default notifier: logs the unlock message"""

    async def notify(self, event: AwardedEvent) -> None:
        logger.info(f"Notify user {event.user_id}: {format_award_message(event)!r}")


class CollectingNotifier:
    """Keeps events in memory (for hosts that poll, and for tests)"""

    def __init__(self):
        self.events: list[AwardedEvent] = []

    async def notify(self, event: AwardedEvent) -> None:
        self.events.append(event)


def format_award_message(event: AwardedEvent) -> str:
    """
    Format the achievement unlock message shown to the learner

    Args:
        event: Newly awarded achievement

    Returns:
        Short celebration text
    """
    message = f"🏆 Achievement Unlocked! You earned: {event.name}"
    if event.description:
        message += f"\n{event.description}"
    return message
