import json
import math
import tempfile
from dataclasses import replace
from pathlib import Path

from workify.ai.types import JSONCompletion
from workify.core.config import settings
from workify.scoring.experience import EXPERIENCE_ALIGNMENT_PROMPT
from workify.scoring.skills import SKILL_EXTRACTION_PROMPT
from workify.services.container import build_services
from workify.services.feedback_service import FEEDBACK_INSIGHTS_PROMPT
from workify.services.tailor_service import TAILORING_PROMPT

RESUME_TEXT = (
    "Senior Backend Engineer\n"
    "- Built Python microservices for payments used by 1.2M users.\n"
    "- Reduced API latency by 38% with PostgreSQL tuning and Redis caching.\n"
    "- Led migration from monolith to event-driven architecture on AWS.\n"
)
JOB_DESCRIPTION = (
    "We need a Senior Backend Engineer with Python, PostgreSQL, Kubernetes and AWS experience. "
    "Must collaborate with product and improve reliability metrics."
)
RESUME_VECTOR = [1.0, 0.0]


def vector_with_similarity(similarity: float) -> list[float]:
    """Unit vector whose cosine similarity with RESUME_VECTOR is `similarity`."""
    return [similarity, math.sqrt(max(0.0, 1.0 - similarity * similarity))]


class FakeEmbeddingClient:
    def __init__(self, vectors=None, default=None, error=None):
        self.vectors = dict(vectors or {})
        self.default = default or RESUME_VECTOR
        self.error = error
        self.calls = []

    async def embed(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.vectors.get(text, self.default)


class FakeCompletionClient:
    """Answers by system prompt; a response may be a string, dict or exception."""

    def __init__(self, responses=None, total_tokens=0):
        self.responses = dict(responses or {})
        self.total_tokens = total_tokens
        self.calls = []

    async def complete_json(self, *, system_prompt, user_prompt, temperature=0.3, max_output_tokens=None):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
            }
        )
        response = self.responses.get(system_prompt, "{}")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(user_prompt)
        if not isinstance(response, str):
            response = json.dumps(response)
        return JSONCompletion(content=response, total_tokens=self.total_tokens)

    def calls_for(self, system_prompt):
        return [call for call in self.calls if call["system_prompt"] == system_prompt]


def default_completion_responses():
    def skills(user_prompt):
        if user_prompt.startswith("Senior Backend Engineer"):
            return {"skills": ["Python", "PostgreSQL", "Redis", "AWS"]}
        return {"skills": ["Python", "PostgreSQL", "Kubernetes", "AWS"]}

    return {
        SKILL_EXTRACTION_PROMPT: skills,
        EXPERIENCE_ALIGNMENT_PROMPT: {"score": 80, "explanation": "Seniority matches."},
        FEEDBACK_INSIGHTS_PROMPT: {
            "strengths": [{"category": "skill", "description": "Strong Python background", "confidence": 0.9}],
            "gaps": [{"category": "skill", "description": "No Kubernetes experience", "severity": "medium"}],
            "recommendations": [{"category": "skill", "action": "Mention container work", "priority": "high"}],
        },
        TAILORING_PROMPT: {
            "tailoredResume": "Tailored resume",
            "coverLetter": "Cover letter",
            "portfolio": "Portfolio",
        },
    }


def temp_db_path(testcase):
    tmp = tempfile.TemporaryDirectory()
    testcase.addCleanup(tmp.cleanup)
    return str(Path(tmp.name) / "workify.db")


def make_services(testcase, embedding_client=None, completion_client=None, **overrides):
    test_settings = replace(settings, db_path=temp_db_path(testcase), **overrides)
    services = build_services(
        test_settings,
        embedding_client=embedding_client or FakeEmbeddingClient(),
        completion_client=completion_client or FakeCompletionClient(default_completion_responses()),
    )
    testcase.addCleanup(services.store.close)
    return services
