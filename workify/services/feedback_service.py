from __future__ import annotations

import asyncio
import json
import logging
import time

from workify.ai.decoding import InsightsPayload, decode
from workify.ai.types import CompletionClient
from workify.core.cache import TTLCache, get_or_compute, openai_response_key
from workify.core.errors import ConflictError, NotFoundError
from workify.core.numeric import clamp_score, round_half_up
from workify.core.pipeline_config import get_ttl
from workify.db.store import Store
from workify.schemas.feedback import FeedbackRecord, FeedbackScores
from workify.scoring import ExperienceAlignmentScorer, SkillExtractor, skill_coverage

logger = logging.getLogger(__name__)

SCORING_WEIGHTS = {
    "semantic_similarity": 0.6,
    "skill_coverage": 0.3,
    "experience_alignment": 0.1,
}
FALLBACK_DISCOUNT = 0.8
FALLBACK_COMPONENT_SCORE = 50
MODEL_VERSION = "v1.0"
HIGH_PROBABILITY_THRESHOLD = 70

FEEDBACK_INSIGHTS_PROMPT = """Analyze a resume against a job description and provide detailed feedback. Return a JSON object with:
- strengths: Array of strength objects with category (skill/experience/education/achievement), description, and confidence (0-1)
- gaps: Array of gap objects with category (skill/experience/education/achievement), description, and severity (low/medium/high)
- recommendations: Array of recommendation objects with category (skill/experience/presentation/content), action, and priority (low/medium/high)

Focus on actionable insights that help the candidate improve their application."""


def selection_probability(semantic: float, skill: float, experience: float) -> int:
    weighted = (
        semantic * SCORING_WEIGHTS["semantic_similarity"]
        + skill * SCORING_WEIGHTS["skill_coverage"]
        + experience * SCORING_WEIGHTS["experience_alignment"]
    )
    return clamp_score(weighted)


def fallback_scores(semantic_similarity_score: int) -> FeedbackScores:
    return FeedbackScores(
        selection_probability=clamp_score(round_half_up(semantic_similarity_score * FALLBACK_DISCOUNT)),
        semantic_similarity_score=clamp_score(semantic_similarity_score),
        skill_coverage_score=FALLBACK_COMPONENT_SCORE,
        experience_alignment_score=FALLBACK_COMPONENT_SCORE,
    )


class FeedbackAggregator:
    """Combines skill coverage, experience alignment and LLM insights into scores.

    Never raises: any failure in the pipeline yields the conservative
    fallback built from the semantic score alone.
    """

    def __init__(
        self,
        client: CompletionClient,
        cache: TTLCache,
        skills: SkillExtractor,
        experience: ExperienceAlignmentScorer,
    ) -> None:
        self._client = client
        self._cache = cache
        self._skills = skills
        self._experience = experience

    async def _insights(
        self,
        resume_text: str,
        job_description: str,
        semantic: int,
        skills: int,
        experience: int,
    ) -> InsightsPayload:
        scores = {"semantic": semantic, "skills": skills, "experience": experience}
        key = openai_response_key(
            resume_text=resume_text,
            job_description=job_description,
            scores=scores,
            type="feedback_insights",
        )

        async def _compute() -> InsightsPayload:
            completion = await self._client.complete_json(
                system_prompt=FEEDBACK_INSIGHTS_PROMPT,
                user_prompt=(
                    f"RESUME:\n{resume_text}\n\nJOB DESCRIPTION:\n{job_description}\n\n"
                    f"SCORES:\nSemantic Similarity: {semantic}%\n"
                    f"Skill Coverage: {skills}%\nExperience Alignment: {experience}%"
                ),
                temperature=0.7,
            )
            return decode(InsightsPayload, completion.content)

        return await get_or_compute(self._cache, key, _compute, get_ttl("feedback_insights", 60 * 60))

    async def generate_feedback(
        self,
        resume_text: str,
        job_description: str,
        semantic_similarity_score: int,
    ) -> FeedbackScores:
        semantic = clamp_score(semantic_similarity_score)
        try:
            resume_skills, job_skills = await asyncio.gather(
                self._skills.extract(resume_text),
                self._skills.extract(job_description),
            )
            coverage = skill_coverage(resume_skills, job_skills)
            experience = await self._experience.score(resume_text, job_description)
            probability = selection_probability(semantic, coverage, experience)
            insights = await self._insights(resume_text, job_description, semantic, coverage, experience)
        except Exception as exc:
            logger.warning("feedback_generation_fallback semantic=%s: %s", semantic, exc)
            return fallback_scores(semantic)

        return FeedbackScores(
            selection_probability=probability,
            semantic_similarity_score=semantic,
            skill_coverage_score=coverage,
            experience_alignment_score=experience,
            strengths=insights.strengths,
            gaps=insights.gaps,
            recommendations=insights.recommendations,
        )


class FeedbackService:
    def __init__(self, store: Store, aggregator: FeedbackAggregator) -> None:
        self._store = store
        self._aggregator = aggregator

    async def generate_for_tailor(
        self,
        tailor_id: str,
        resume_text: str,
        job_description: str,
    ) -> FeedbackRecord | None:
        """Generate and store feedback for a tailor at most once.

        Returns None when feedback already exists or the tailor is gone.
        """
        if self._store.feedback_exists(tailor_id):
            logger.info("feedback_skipped_existing tailor_id=%s", tailor_id)
            return None

        tailor = self._store.get_tailor(tailor_id)
        if tailor is None:
            logger.warning("feedback_skipped_missing_tailor tailor_id=%s", tailor_id)
            return None

        started_at = time.perf_counter()
        scores = await self._aggregator.generate_feedback(resume_text, job_description, tailor.fit_score)
        record = self._store.insert_feedback(
            user_id=tailor.user_id,
            job_id=tailor.job_id,
            tailor_id=tailor.id,
            scores=scores,
            model_version=MODEL_VERSION,
        )
        if record is None:
            logger.info("feedback_skipped_existing tailor_id=%s", tailor_id)
            return None

        logger.info(
            json.dumps(
                {
                    "event": "feedback_generated",
                    "tailor_id": tailor.id,
                    "selection_probability": record.selection_probability,
                    "duration_ms": int((time.perf_counter() - started_at) * 1000),
                }
            )
        )
        return record

    async def generate_now(self, user_id: str, tailor_id: str) -> FeedbackRecord:
        tailor = self._store.get_tailor(tailor_id, user_id=user_id)
        if tailor is None:
            raise NotFoundError("Tailor not found")
        if self._store.feedback_exists(tailor_id):
            raise ConflictError("Feedback already exists for this tailor")

        profile = self._store.get_profile(user_id)
        if profile is None:
            raise NotFoundError("Resume not found")
        job = self._store.get_job(tailor.job_id)
        if job is None:
            raise NotFoundError("Job not found")

        record = await self.generate_for_tailor(tailor_id, profile.resume_text, job.description)
        if record is None:
            raise ConflictError("Feedback already exists for this tailor")
        return record

    def get_for_tailor(self, user_id: str, tailor_id: str) -> FeedbackRecord:
        record = self._store.get_feedback_for_tailor(tailor_id, user_id=user_id)
        if record is None:
            raise NotFoundError("Feedback not found")
        return record

    def list_feedback(
        self,
        *,
        user_id: str | None = None,
        min_score: int | None = None,
        max_score: int | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[FeedbackRecord], int]:
        return self._store.list_feedback(
            user_id=user_id,
            min_score=min_score,
            max_score=max_score,
            skip=skip,
            limit=limit,
        )
