from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field

from workify.ai.factory import get_ai_client
from workify.ai.types import CompletionClient, EmbeddingClient
from workify.core.cache import CacheRegistry, build_cache_registry, run_sweeper, sweep_interval
from workify.core.config import Settings
from workify.db.store import Store
from workify.scoring import ExperienceAlignmentScorer, SimilarityScorer, SkillExtractor
from workify.services.analytics_service import AnalyticsService
from workify.services.application_service import ApplicationService
from workify.services.feedback_service import FeedbackAggregator, FeedbackService
from workify.services.feedback_worker import FeedbackWorker
from workify.services.job_service import JobProcessor
from workify.services.profile_service import ProfileService
from workify.services.tailor_service import TailoredContentGenerator

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    store: Store
    caches: CacheRegistry
    profiles: ProfileService
    jobs: JobProcessor
    feedback: FeedbackService
    feedback_worker: FeedbackWorker
    analytics: AnalyticsService
    applications: ApplicationService
    sweep_interval: float = 60.0
    _stop_event: asyncio.Event | None = field(default=None, repr=False)
    _sweeper: asyncio.Task[None] | None = field(default=None, repr=False)

    def start(self) -> None:
        self._stop_event = asyncio.Event()
        self._sweeper = asyncio.create_task(run_sweeper(self.caches, self.sweep_interval, self._stop_event))
        self.feedback_worker.start()
        logger.info("services_started")

    async def stop(self) -> None:
        await self.feedback_worker.stop()
        if self._stop_event is not None:
            self._stop_event.set()
        if self._sweeper is not None and not self._sweeper.done():
            self._sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper
        self._sweeper = None
        self.store.close()
        logger.info("services_stopped")


def build_services(
    settings: Settings,
    embedding_client: EmbeddingClient | None = None,
    completion_client: CompletionClient | None = None,
) -> AppServices:
    if embedding_client is None or completion_client is None:
        provider = get_ai_client()
        embedding_client = embedding_client or provider
        completion_client = completion_client or provider

    store = Store(settings.db_path)
    caches = build_cache_registry()

    skills = SkillExtractor(completion_client, caches.ai)
    experience = ExperienceAlignmentScorer(completion_client, caches.ai)
    aggregator = FeedbackAggregator(completion_client, caches.ai, skills, experience)
    feedback = FeedbackService(store, aggregator)
    worker = FeedbackWorker(
        feedback,
        queue_size=settings.feedback_queue_size,
        workers=settings.feedback_workers,
    )
    profiles = ProfileService(store, caches.user)

    jobs = JobProcessor(
        store=store,
        profiles=profiles,
        similarity=SimilarityScorer(embedding_client, caches.ai),
        generator=TailoredContentGenerator(completion_client, caches.ai),
        feedback_worker=worker,
    )

    return AppServices(
        store=store,
        caches=caches,
        profiles=profiles,
        jobs=jobs,
        feedback=feedback,
        feedback_worker=worker,
        analytics=AnalyticsService(store, caches.analytics, months_window=settings.feedback_months_window),
        applications=ApplicationService(store),
        sweep_interval=sweep_interval(),
    )
