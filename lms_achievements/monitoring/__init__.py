"""Monitoring infrastructure for the achievement engine"""
from lms_achievements.monitoring.sentry_config import init_sentry, capture_exception
from lms_achievements.monitoring.prometheus_metrics import (
    metrics,
    track_run,
    record_run,
    record_evaluation,
    record_award,
)

__all__ = [
    "init_sentry",
    "capture_exception",
    "metrics",
    "track_run",
    "record_run",
    "record_evaluation",
    "record_award",
]
