"""Lenient decoding of JSON produced by the completion model.

The provider only promises best-effort schema adherence, so every payload the
pipeline consumes is described once here and decoded with per-field defaults:

- skills: list of non-empty strings, default ``[]``
- experience score: number or numeric string, rounded and clamped to
  0-100, default 50
- insights: items missing a description/action are dropped; unknown
  categories fall back to ``experience`` (insights) or ``content``
  (recommendations); unknown priorities become ``medium``
- tailored documents: strings only, anything else becomes ``""``

``decode`` never raises on malformed content.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from workify.core.numeric import clamp_score
from workify.schemas.feedback import FeedbackInsight, FeedbackRecommendation

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_INSIGHT_CATEGORIES = {"skill", "experience", "education", "achievement"}
_RECOMMENDATION_CATEGORIES = {"skill", "experience", "presentation", "content"}
_LEVELS = {"low", "medium", "high"}

P = TypeVar("P", bound="LenientPayload")


def load_json(content: str | None) -> Any:
    text = _FENCE_RE.sub("", (content or "").strip())
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            return None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    seen: set[str] = set()
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        clean = item.strip()
        if not clean or clean.lower() in seen:
            continue
        seen.add(clean.lower())
        out.append(clean)
    return out


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _level(value: Any) -> str | None:
    level = _text(value).lower()
    return level if level in _LEVELS else None


def _confidence(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    if 1.0 < number <= 100.0:
        number = number / 100.0
    return max(0.0, min(1.0, number))


def _category(item: dict[str, Any], allowed: set[str], default: str) -> str:
    raw = _text(item.get("category") or item.get("type")).lower()
    return raw if raw in allowed else default


def coerce_insight(item: Any) -> FeedbackInsight | None:
    if not isinstance(item, dict):
        return None
    description = _text(item.get("description"))
    if not description:
        return None
    return FeedbackInsight(
        category=_category(item, _INSIGHT_CATEGORIES, "experience"),
        description=description,
        confidence=_confidence(item.get("confidence")),
        severity=_level(item.get("severity")),
    )


def coerce_recommendation(item: Any) -> FeedbackRecommendation | None:
    if not isinstance(item, dict):
        return None
    action = _text(item.get("action") or item.get("description"))
    if not action:
        return None
    return FeedbackRecommendation(
        category=_category(item, _RECOMMENDATION_CATEGORIES, "content"),
        action=action,
        priority=_level(item.get("priority")) or "medium",
    )


class LenientPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @classmethod
    def prepare_raw(cls, data: Any) -> Any:
        return data


def decode(model: type[P], content: str | None) -> P:
    data = model.prepare_raw(load_json(content))
    if not isinstance(data, dict):
        return model()
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.warning("llm_payload_invalid model=%s errors=%s", model.__name__, exc.error_count())
        return model()


class SkillsPayload(LenientPayload):
    skills: list[str] = Field(default_factory=list)

    @classmethod
    def prepare_raw(cls, data: Any) -> Any:
        if isinstance(data, list):
            return {"skills": data}
        if isinstance(data, dict) and "skills" not in data:
            lists = [value for value in data.values() if isinstance(value, list)]
            if len(lists) == 1:
                return {"skills": lists[0]}
        return data

    @field_validator("skills", mode="before")
    @classmethod
    def _coerce_skills(cls, value: Any) -> list[str]:
        return _string_list(value)


class ExperiencePayload(LenientPayload):
    score: int = 50
    explanation: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def _coerce_score(cls, value: Any) -> int:
        if isinstance(value, bool):
            return 50
        if isinstance(value, str):
            try:
                value = float(value.strip().rstrip("%"))
            except (ValueError, OverflowError):
                return 50
        if isinstance(value, (int, float)):
            try:
                return clamp_score(float(value))
            except (ValueError, OverflowError):
                return 50
        return 50

    @field_validator("explanation", mode="before")
    @classmethod
    def _coerce_explanation(cls, value: Any) -> str:
        return _text(value)


class InsightsPayload(LenientPayload):
    strengths: list[FeedbackInsight] = Field(default_factory=list)
    gaps: list[FeedbackInsight] = Field(default_factory=list)
    recommendations: list[FeedbackRecommendation] = Field(default_factory=list)

    @field_validator("strengths", "gaps", mode="before")
    @classmethod
    def _coerce_insights(cls, value: Any) -> list[FeedbackInsight]:
        if not isinstance(value, list):
            return []
        return [insight for insight in (coerce_insight(item) for item in value) if insight]

    @field_validator("recommendations", mode="before")
    @classmethod
    def _coerce_recommendations(cls, value: Any) -> list[FeedbackRecommendation]:
        if not isinstance(value, list):
            return []
        return [rec for rec in (coerce_recommendation(item) for item in value) if rec]


class TailoredContentPayload(LenientPayload):
    tailored_resume: str = Field(
        default="", validation_alias=AliasChoices("tailoredResume", "tailored_resume", "resume")
    )
    cover_letter: str = Field(default="", validation_alias=AliasChoices("coverLetter", "cover_letter"))
    portfolio: str = Field(default="", validation_alias=AliasChoices("portfolio"))

    @field_validator("tailored_resume", "cover_letter", "portfolio", mode="before")
    @classmethod
    def _coerce_document(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""
