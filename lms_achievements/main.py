"""Command-line entry point for operators

    python -m lms_achievements reevaluate --user-id U [--lesson-id L] [--module-id M]
                                          [--quiz-id Q --quiz-score S [--quiz-passed]]
    python -m lms_achievements progress --user-id U
"""
import argparse
import asyncio
import json
import logging
from typing import Optional

from lms_achievements.achievements.cache import TTLCache
from lms_achievements.config import (
    CATALOG_CACHE_MAX_ENTRIES,
    CATALOG_CACHE_TTL,
    LOG_LEVEL,
    validate_config,
)
from lms_achievements.container import init_container
from lms_achievements.db.connection import db
from lms_achievements.db.store import PostgresStore
from lms_achievements.exceptions import AchievementEngineError
from lms_achievements.models.events import RunStatus, TriggerContext
from lms_achievements.monitoring import init_sentry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lms_achievements",
        description="Achievement engine maintenance commands"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    reevaluate = subparsers.add_parser(
        "reevaluate", help="Run one evaluation for a user and print the report"
    )
    reevaluate.add_argument("--user-id", required=True, help="User UUID")
    reevaluate.add_argument("--lesson-id", help="Lesson the user completed")
    reevaluate.add_argument("--module-id", help="Module of the lesson or quiz")
    reevaluate.add_argument("--quiz-id", help="Quiz the user submitted")
    reevaluate.add_argument("--quiz-score", type=float, help="Quiz score (0-100)")
    reevaluate.add_argument("--quiz-passed", action="store_true", help="Quiz attempt passed")

    progress = subparsers.add_parser("progress", help="Print a user's progress overview")
    progress.add_argument("--user-id", required=True, help="User UUID")

    return parser


def build_context(args: argparse.Namespace) -> TriggerContext:
    """Turn reevaluate arguments into a trigger context"""
    if args.quiz_id and args.quiz_score is None:
        raise ValueError("--quiz-score is required with --quiz-id")
    return TriggerContext(
        user_id=args.user_id,
        lesson_id=args.lesson_id,
        module_id=args.module_id,
        quiz_id=args.quiz_id,
        quiz_score=args.quiz_score,
        quiz_passed=args.quiz_passed if args.quiz_id else None,
    )


async def main(args: argparse.Namespace) -> int:
    """Run one command against PostgreSQL"""
    try:
        logger.info("Validating configuration...")
        validate_config()
        init_sentry()

        logger.info("Initializing database connection pool...")
        await db.init_pool()

        container = init_container(
            PostgresStore(),
            cache=TTLCache(ttl=CATALOG_CACHE_TTL, max_entries=CATALOG_CACHE_MAX_ENTRIES),
        )

        if args.command == "reevaluate":
            context = build_context(args)
            report = await container.dispatcher.evaluate_and_award(context)
            print(json.dumps(report.to_dict(), indent=2, default=str))
            return 1 if report.status == RunStatus.FAILED else 0

        overview = await container.aggregator.progress_overview(args.user_id)
        modules = await container.aggregator.module_progress(args.user_id)
        print(json.dumps({
            "overview": overview.model_dump(),
            "modules": [m.model_dump(mode="json") for m in modules],
        }, indent=2))
        return 0

    except (AchievementEngineError, ValueError) as e:
        logger.error(f"Command failed: {e}")
        return 1
    finally:
        logger.info("Closing database connection...")
        await db.close_pool()


def run(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    )

    return asyncio.run(main(args))


if __name__ == "__main__":
    raise SystemExit(run())
