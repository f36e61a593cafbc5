"""
Engine Container

Wires the engine components around one store. Components are created lazily
on first access so a host that only needs progress reads never builds the
dispatcher.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from lms_achievements.db.store import AchievementStore

logger = logging.getLogger(__name__)


@dataclass
class EngineContainer:
    """
    Holds the engine's components.

    The store is injected; the catalog cache and notifier are optional.
    """

    store: AchievementStore
    cache: Optional[object] = None  # TTLCache for the catalog
    notifier: Optional[object] = None  # Notifier for award events

    _aggregator: Optional[object] = field(default=None, init=False, repr=False)
    _loader: Optional[object] = field(default=None, init=False, repr=False)
    _evaluator: Optional[object] = field(default=None, init=False, repr=False)
    _writer: Optional[object] = field(default=None, init=False, repr=False)
    _sink: Optional[object] = field(default=None, init=False, repr=False)
    _dispatcher: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def aggregator(self):
        """Get ProgressAggregator (lazy-loaded)"""
        if self._aggregator is None:
            from lms_achievements.achievements.aggregator import ProgressAggregator
            self._aggregator = ProgressAggregator(self.store)
            logger.debug("ProgressAggregator instantiated")
        return self._aggregator

    @property
    def loader(self):
        """Get CatalogLoader (lazy-loaded)"""
        if self._loader is None:
            from lms_achievements.achievements.catalog import CatalogLoader
            self._loader = CatalogLoader(self.store, self.cache)
            logger.debug("CatalogLoader instantiated")
        return self._loader

    @property
    def evaluator(self):
        """Get CriteriaEvaluator (lazy-loaded)"""
        if self._evaluator is None:
            from lms_achievements.achievements.evaluator import CriteriaEvaluator
            self._evaluator = CriteriaEvaluator(self.store, self.aggregator)
            logger.debug("CriteriaEvaluator instantiated")
        return self._evaluator

    @property
    def writer(self):
        """Get AwardWriter (lazy-loaded)"""
        if self._writer is None:
            from lms_achievements.achievements.writer import AwardWriter
            self._writer = AwardWriter(self.store)
            logger.debug("AwardWriter instantiated")
        return self._writer

    @property
    def sink(self):
        """Get ReportSink (lazy-loaded)"""
        if self._sink is None:
            from lms_achievements.achievements.reporting import ReportSink
            self._sink = ReportSink()
        return self._sink

    @property
    def dispatcher(self):
        """Get TriggerDispatcher (lazy-loaded)"""
        if self._dispatcher is None:
            from lms_achievements.achievements.dispatcher import TriggerDispatcher
            self._dispatcher = TriggerDispatcher(
                self.store,
                loader=self.loader,
                evaluator=self.evaluator,
                writer=self.writer,
                notifier=self.notifier,
                sink=self.sink,
            )
            logger.debug("TriggerDispatcher instantiated")
        return self._dispatcher


# Global container instance (initialized by the host application)
_container: Optional[EngineContainer] = None


def get_container() -> EngineContainer:
    """
    Get the global engine container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Engine container not initialized. "
            "Call init_container() before using the achievement engine."
        )
    return _container


def init_container(
    store: AchievementStore,
    cache: Optional[object] = None,
    notifier: Optional[object] = None
) -> EngineContainer:
    """
    Initialize the global engine container.

    Args:
        store: Store the engine reads and writes
        cache: Optional TTLCache for the achievement catalog
        notifier: Optional Notifier for award events

    Returns:
        EngineContainer: The initialized container
    """
    global _container

    _container = EngineContainer(store=store, cache=cache, notifier=notifier)

    logger.info("Engine container initialized")
    return _container
