"""Sentry configuration and helpers"""
import logging
from typing import Any, Optional
import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration
from lms_achievements.config import ENABLE_SENTRY, SENTRY_DSN, SENTRY_ENVIRONMENT

logger = logging.getLogger(__name__)


def init_sentry() -> None:
    """Initialize Sentry SDK"""
    if not ENABLE_SENTRY:
        logger.info("Sentry monitoring disabled")
        return

    if not SENTRY_DSN:
        logger.warning("Sentry enabled but SENTRY_DSN not configured")
        return

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        integrations=[
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR
            ),
        ],
    )
    logger.info(f"Sentry initialized: environment={SENTRY_ENVIRONMENT}")


def capture_exception(error: Exception, **context: Any) -> Optional[str]:
    """
    Report an exception to Sentry with extra context

    Returns:
        Sentry event id, or None when Sentry is disabled
    """
    if not ENABLE_SENTRY:
        return None

    return sentry_sdk.capture_exception(error, extras=context)
