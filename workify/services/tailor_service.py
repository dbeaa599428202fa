from __future__ import annotations

from dataclasses import dataclass

from workify.ai.decoding import TailoredContentPayload, decode
from workify.ai.types import CompletionClient
from workify.core.cache import TTLCache, get_or_compute, openai_response_key
from workify.core.pipeline_config import get_ttl
from workify.schemas.profile import Intent

TAILORING_PROMPT = """You are an expert resume tailoring assistant. Your task is to create three documents:

1. A tailored resume that highlights relevant experience and skills for the job description.
2. A concise cover letter with a short intro and 3 specific match points.
3. A 1-page value portfolio with 3 impact bullets and 1 mini-project snippet.

Base your tailoring on the provided resume, job description, and user's job search preferences.
Return a JSON object with the string fields "tailoredResume", "coverLetter" and "portfolio"."""

TAILORING_TEMPERATURE = 0.7
TAILORING_MAX_TOKENS = 4000


@dataclass(frozen=True)
class TailoredContent:
    tailored_resume: str
    cover_letter: str
    portfolio: str
    token_usage: int = 0


def _joined(values: list[str]) -> str:
    return ", ".join(values) if values else "Not specified"


def build_tailoring_prompt(resume_text: str, job_description: str, intent: Intent) -> str:
    return (
        f"RESUME:\n{resume_text}\n\n"
        f"JOB DESCRIPTION:\n{job_description}\n\n"
        "USER PREFERENCES:\n"
        f"Desired Roles: {', '.join(intent.roles)}\n"
        f"Dream Companies: {_joined(intent.dream_companies)}\n"
        f"Preferred Locations: {_joined(intent.locations)}\n"
        f"Work Type: {intent.work_type or 'Not specified'}"
    )


class TailoredContentGenerator:
    """Produces the tailored resume, cover letter and portfolio for one job.

    Results are cached for an hour per (resume, job description, intent).
    Provider errors propagate to the caller.
    """

    def __init__(self, client: CompletionClient, cache: TTLCache) -> None:
        self._client = client
        self._cache = cache

    async def generate(self, resume_text: str, job_description: str, intent: Intent) -> TailoredContent:
        key = openai_response_key(
            resume_text=resume_text,
            job_description=job_description,
            user_intent=intent.model_dump(),
            type="tailored_content",
        )

        async def _compute() -> TailoredContent:
            completion = await self._client.complete_json(
                system_prompt=TAILORING_PROMPT,
                user_prompt=build_tailoring_prompt(resume_text, job_description, intent),
                temperature=TAILORING_TEMPERATURE,
                max_output_tokens=TAILORING_MAX_TOKENS,
            )
            payload = decode(TailoredContentPayload, completion.content)
            return TailoredContent(
                tailored_resume=payload.tailored_resume,
                cover_letter=payload.cover_letter,
                portfolio=payload.portfolio,
                token_usage=completion.total_tokens or 0,
            )

        return await get_or_compute(self._cache, key, _compute, get_ttl("tailored_content", 60 * 60))
