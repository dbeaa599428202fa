from __future__ import annotations

import logging

from rapidfuzz.distance import Levenshtein

from workify.ai.decoding import SkillsPayload, decode
from workify.ai.types import CompletionClient
from workify.core.cache import TTLCache, get_or_compute, openai_response_key
from workify.core.numeric import round_half_up
from workify.core.pipeline_config import get_ttl

logger = logging.getLogger(__name__)

FUZZY_MATCH_THRESHOLD = 0.7

SKILL_EXTRACTION_PROMPT = (
    "Extract technical skills, soft skills, and tools from the given text. "
    'Return only a JSON object of the form {"skills": ["skill", ...]}, no explanations.'
)


def levenshtein_similarity(left: str, right: str) -> float:
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return (longest - Levenshtein.distance(left, right)) / longest


def _is_exact_match(job_skill: str, resume_skills: list[str]) -> bool:
    return any(job_skill in resume_skill or resume_skill in job_skill for resume_skill in resume_skills)


def _is_partial_match(job_skill: str, resume_skills: list[str]) -> bool:
    return any(
        levenshtein_similarity(job_skill, resume_skill) >= FUZZY_MATCH_THRESHOLD
        for resume_skill in resume_skills
    )


def skill_coverage(resume_skills: list[str], job_skills: list[str]) -> int:
    """Percentage (0-100) of job skills found in the resume skills.

    A job skill counts as covered on case-insensitive substring containment in
    either direction or a normalized Levenshtein similarity of at least 0.7.
    Distinct covered skills are divided by the full length of ``job_skills``,
    duplicates included. An empty job list is full coverage.
    """
    if not job_skills:
        return 100

    available = [(skill or "").lower() for skill in resume_skills]
    wanted = [(skill or "").lower() for skill in job_skills]
    exact = {skill for skill in wanted if _is_exact_match(skill, available)}
    partial = {skill for skill in wanted if _is_partial_match(skill, available)}
    return round_half_up(100 * len(exact | partial) / len(job_skills))


class SkillExtractor:
    def __init__(self, client: CompletionClient, cache: TTLCache) -> None:
        self._client = client
        self._cache = cache

    async def extract(self, text: str) -> list[str]:
        key = openai_response_key(text=text, type="skill_extraction")

        async def _compute() -> list[str]:
            completion = await self._client.complete_json(
                system_prompt=SKILL_EXTRACTION_PROMPT,
                user_prompt=text,
                temperature=0.3,
            )
            skills = decode(SkillsPayload, completion.content).skills
            if not skills:
                logger.info("skill_extraction_empty text_len=%s", len(text))
            return skills

        return await get_or_compute(self._cache, key, _compute, get_ttl("skill_extraction", 60 * 60))
