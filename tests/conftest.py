"""Shared fixtures for achievement engine tests"""
import pytest
from datetime import datetime, timezone

from lms_achievements.achievements import (
    AwardWriter,
    CatalogLoader,
    CollectingNotifier,
    CriteriaEvaluator,
    ProgressAggregator,
    ReportSink,
    TriggerDispatcher,
)
from lms_achievements.db.store import InMemoryStore


# ============================================================================
# Identifiers
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-1"


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def store():
    """Empty in-memory store"""
    return InMemoryStore()


@pytest.fixture
def course_store(store):
    """
    Store seeded with a small course:

    - Module m1 "Basics": lessons l1, l2, l3; quiz q1 on l3
    - Module m2 "Advanced": lesson l4; quiz q2 on l4
    - Module m3 "Coming soon": no lessons
    """
    store.add_module("m1", "Basics", order=1)
    store.add_module("m2", "Advanced", order=2)
    store.add_module("m3", "Coming soon", order=3)
    for lesson_id in ("l1", "l2", "l3"):
        store.add_lesson(lesson_id, "m1")
    store.add_lesson("l4", "m2")
    store.add_quiz("q1", "l3")
    store.add_quiz("q2", "l4", pass_threshold=80)
    return store


@pytest.fixture
def fixed_time():
    return datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def aggregator(course_store):
    return ProgressAggregator(course_store)


@pytest.fixture
def evaluator(course_store, aggregator):
    return CriteriaEvaluator(course_store, aggregator)


@pytest.fixture
def notifier():
    return CollectingNotifier()


@pytest.fixture
def sink():
    return ReportSink()


@pytest.fixture
def dispatcher(course_store, evaluator, notifier, sink):
    """Dispatcher wired to the seeded store, without a catalog cache"""
    return TriggerDispatcher(
        course_store,
        loader=CatalogLoader(course_store),
        evaluator=evaluator,
        writer=AwardWriter(course_store),
        notifier=notifier,
        sink=sink,
    )
