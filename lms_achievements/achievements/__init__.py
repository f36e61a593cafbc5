"""
Achievement rule evaluation

Loads achievement definitions, evaluates them against lesson and quiz events,
and awards each one to a user at most once.
"""
from lms_achievements.achievements.cache import TTLCache
from lms_achievements.achievements.aggregator import ProgressAggregator
from lms_achievements.achievements.catalog import CatalogLoader
from lms_achievements.achievements.evaluator import CriteriaEvaluator
from lms_achievements.achievements.writer import AwardWriter
from lms_achievements.achievements.notifier import (
    Notifier,
    LoggingNotifier,
    CollectingNotifier,
    format_award_message,
)
from lms_achievements.achievements.reporting import ReportSink
from lms_achievements.achievements.dispatcher import TriggerDispatcher

__all__ = [
    "TTLCache",
    "ProgressAggregator",
    "CatalogLoader",
    "CriteriaEvaluator",
    "AwardWriter",
    "Notifier",
    "LoggingNotifier",
    "CollectingNotifier",
    "format_award_message",
    "ReportSink",
    "TriggerDispatcher",
]
