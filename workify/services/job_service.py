from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass

from workify.core.errors import ConflictError, NotFoundError, UpstreamAIError
from workify.core.numeric import clamp_score
from workify.db.store import Store
from workify.schemas.jobs import Job, ProcessStatus
from workify.schemas.profile import DEFAULT_INTENT
from workify.scoring import SimilarityScorer
from workify.services.feedback_worker import FeedbackTask, FeedbackWorker
from workify.services.profile_service import ProfileService
from workify.services.tailor_service import TailoredContentGenerator

logger = logging.getLogger(__name__)

FIT_THRESHOLD = 70


@dataclass(frozen=True)
class ProcessResult:
    fit_score: int
    status: ProcessStatus
    tailor_id: str | None = None


class JobProcessor:
    """Scores a pending job against the owner's resume and tailors good fits.

    A job is processed once: its fit score and final status are written
    together at the end. AI failures leave it pending.
    """

    def __init__(
        self,
        store: Store,
        profiles: ProfileService,
        similarity: SimilarityScorer,
        generator: TailoredContentGenerator,
        feedback_worker: FeedbackWorker,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._similarity = similarity
        self._generator = generator
        self._feedback_worker = feedback_worker
        self._in_flight: set[str] = set()

    def _load_job(self, user_id: str, job_id: str) -> Job:
        job = self._store.get_job(job_id, user_id=user_id)
        if job is None:
            raise NotFoundError("Job not found")
        if job.status != "pending":
            raise ConflictError(f"Job already {job.status}")
        return job

    async def process(self, user_id: str, job_id: str) -> ProcessResult:
        job = self._load_job(user_id, job_id)
        if job.id in self._in_flight:
            raise ConflictError("Job is already being processed")
        self._in_flight.add(job.id)
        try:
            return await self._process(user_id, job)
        finally:
            self._in_flight.discard(job.id)

    async def _process(self, user_id: str, job: Job) -> ProcessResult:
        started_at = time.perf_counter()

        profile = self._profiles.get_resume(user_id)
        if profile is None:
            raise NotFoundError("Resume not found")
        intent = self._profiles.get_intent(user_id) or DEFAULT_INTENT

        try:
            similarity = await self._similarity.score(profile.resume_text, job.description)
        except Exception as exc:
            logger.exception("job_similarity_failed job_id=%s", job.id)
            raise UpstreamAIError("Failed to score job fit") from exc

        fit_score = clamp_score(similarity * 100)
        if fit_score < FIT_THRESHOLD:
            self._store.finalize_job(job.id, fit_score=fit_score, status="not_a_good_fit")
            self._log_result(job.id, fit_score, "not_a_good_fit", started_at)
            return ProcessResult(fit_score=fit_score, status="not_a_good_fit")

        try:
            content = await self._generator.generate(profile.resume_text, job.description, intent)
        except Exception as exc:
            logger.exception("job_tailoring_failed job_id=%s", job.id)
            raise UpstreamAIError("Failed to generate tailored content") from exc

        tailor = self._store.create_tailor(
            job_id=job.id,
            user_id=user_id,
            tailored_resume=content.tailored_resume,
            cover_letter=content.cover_letter,
            portfolio=content.portfolio,
            fit_score=fit_score,
            token_usage=content.token_usage,
        )
        self._store.finalize_job(job.id, fit_score=fit_score, status="processed")

        self._feedback_worker.submit(
            FeedbackTask(
                tailor_id=tailor.id,
                resume_text=profile.resume_text,
                job_description=job.description,
            )
        )
        self._log_result(job.id, fit_score, "processed", started_at)
        return ProcessResult(fit_score=fit_score, status="processed", tailor_id=tailor.id)

    def _log_result(self, job_id: str, fit_score: int, status: str, started_at: float) -> None:
        logger.info(
            json.dumps(
                {
                    "event": "job_processed",
                    "job_id": job_id,
                    "fit_score": fit_score,
                    "status": status,
                    "duration_ms": int((time.perf_counter() - started_at) * 1000),
                }
            )
        )
