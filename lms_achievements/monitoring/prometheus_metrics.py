"""Prometheus metrics definitions and helpers"""
import logging
import time
from contextlib import contextmanager
from prometheus_client import Counter, Histogram
from lms_achievements.config import ENABLE_PROMETHEUS

logger = logging.getLogger(__name__)


class AchievementMetrics:
    """Container for all achievement engine metrics"""

    def __init__(self, enabled: bool = ENABLE_PROMETHEUS):
        self._enabled = enabled
        if not enabled:
            logger.info("Prometheus metrics disabled")
            return

        # Evaluation runs
        self.runs_total = Counter(
            'achievement_runs_total',
            'Total achievement evaluation runs',
            ['status']
        )

        self.run_duration_seconds = Histogram(
            'achievement_run_duration_seconds',
            'Achievement evaluation run latency',
            buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0]
        )

        # Per-achievement evaluations
        self.evaluations_total = Counter(
            'achievement_evaluations_total',
            'Total criteria evaluations',
            ['criteria_type', 'result']
        )

        # Award writes
        self.awards_total = Counter(
            'achievements_awarded_total',
            'Total award attempts',
            ['outcome']
        )

        logger.info("Prometheus metrics initialized")

    @property
    def enabled(self) -> bool:
        """Check if metrics are enabled"""
        return self._enabled


# Global metrics instance
metrics = AchievementMetrics()


@contextmanager
def track_run():
    """Track evaluation run duration"""
    if not metrics.enabled:
        yield
        return

    start_time = time.time()
    try:
        yield
    finally:
        metrics.run_duration_seconds.observe(time.time() - start_time)


def record_run(status: str) -> None:
    """Count a finished run by status"""
    if not metrics.enabled:
        return
    metrics.runs_total.labels(status=status).inc()


def record_evaluation(criteria_type: str, result: str) -> None:
    """Count one criteria evaluation ('met', 'not_met', 'skipped', 'error')"""
    if not metrics.enabled:
        return
    metrics.evaluations_total.labels(criteria_type=criteria_type, result=result).inc()


def record_award(outcome: str) -> None:
    """Count one award attempt by outcome"""
    if not metrics.enabled:
        return
    metrics.awards_total.labels(outcome=outcome).inc()
