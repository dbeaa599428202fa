from __future__ import annotations

from workify.ai.decoding import ExperiencePayload, decode
from workify.ai.types import CompletionClient
from workify.core.cache import TTLCache, get_or_compute, openai_response_key
from workify.core.pipeline_config import get_ttl

EXPERIENCE_ALIGNMENT_PROMPT = (
    "Analyze the experience alignment between a resume and job description. "
    "Consider years of experience, seniority level, and relevant work history. "
    'Return a JSON object {"score": <integer 0-100>, "explanation": "<one or two sentences>"}.'
)


class ExperienceAlignmentScorer:
    def __init__(self, client: CompletionClient, cache: TTLCache) -> None:
        self._client = client
        self._cache = cache

    async def score(self, resume_text: str, job_description: str) -> int:
        key = openai_response_key(
            resume_text=resume_text,
            job_description=job_description,
            type="experience_alignment",
        )

        async def _compute() -> int:
            completion = await self._client.complete_json(
                system_prompt=EXPERIENCE_ALIGNMENT_PROMPT,
                user_prompt=f"RESUME:\n{resume_text}\n\nJOB DESCRIPTION:\n{job_description}",
                temperature=0.3,
            )
            return decode(ExperiencePayload, completion.content).score

        return await get_or_compute(self._cache, key, _compute, get_ttl("experience_alignment", 60 * 60))
