"""
Run reporting

Background evaluation runs never raise into the code that triggered them, so
their outcomes go here instead: every finished run is logged and counted, and
crashes are also sent to Sentry. The last few reports are kept in memory for
operators and tests.
"""

import logging
from collections import deque
from typing import Optional

from lms_achievements.models.events import EvaluationReport, RunStatus
from lms_achievements.monitoring import capture_exception, record_run

logger = logging.getLogger(__name__)


class ReportSink:
    """Receives evaluation reports and background-task crashes"""

    def __init__(self, history: int = 100):
        self.recent: deque[EvaluationReport] = deque(maxlen=history)
        self.crashes: deque[dict] = deque(maxlen=history)

    def report(self, report: EvaluationReport) -> None:
        """Record a finished evaluation run"""
        self.recent.append(report)
        record_run(report.status.value)

        summary = (
            f"Achievement run for user {report.user_id}: {report.status.value} "
            f"(candidates={report.candidates}, evaluated={report.evaluated}, "
            f"awarded={len(report.awarded)}, skipped={len(report.skipped)}, "
            f"errors={len(report.errors)}, {report.duration_seconds:.3f}s)"
        )

        if report.status == RunStatus.FAILED:
            logger.error(summary, extra={"report": report.to_dict()})
        elif report.status == RunStatus.PARTIAL_FAILURE:
            logger.warning(summary, extra={"report": report.to_dict()})
        else:
            logger.info(summary)

    def report_crash(self, task_name: str, error: BaseException, user_id: Optional[str] = None) -> None:
        """Record a background run that died with an unexpected exception"""
        self.crashes.append({
            "task": task_name,
            "user_id": user_id,
            "error": type(error).__name__,
            "message": str(error),
        })
        logger.error(
            f"Achievement task {task_name} crashed: {type(error).__name__}: {error}",
            exc_info=error
        )
        if isinstance(error, Exception):
            capture_exception(error, task=task_name, user_id=user_id)

    def last(self) -> Optional[EvaluationReport]:
        return self.recent[-1] if self.recent else None
