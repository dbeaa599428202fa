from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

InsightCategory = Literal["skill", "experience", "education", "achievement"]
RecommendationCategory = Literal["skill", "experience", "presentation", "content"]
Severity = Literal["low", "medium", "high"]
Priority = Literal["low", "medium", "high"]


class FeedbackInsight(BaseModel):
    category: InsightCategory
    description: str
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    severity: Severity | None = None


class FeedbackRecommendation(BaseModel):
    category: RecommendationCategory
    action: str
    priority: Priority = "medium"


class FeedbackScores(BaseModel):
    selection_probability: int = Field(ge=0, le=100)
    semantic_similarity_score: int = Field(ge=0, le=100)
    skill_coverage_score: int = Field(ge=0, le=100)
    experience_alignment_score: int = Field(ge=0, le=100)
    strengths: list[FeedbackInsight] = Field(default_factory=list)
    gaps: list[FeedbackInsight] = Field(default_factory=list)
    recommendations: list[FeedbackRecommendation] = Field(default_factory=list)


class FeedbackRecord(FeedbackScores):
    id: str
    user_id: str
    job_id: str
    tailor_id: str
    model_version: str
    created_at: datetime


class FeedbackGenerateRequest(BaseModel):
    tailor_id: str = Field(min_length=1, max_length=64)


class FeedbackGenerateResponse(BaseModel):
    message: str
    feedback: FeedbackRecord


class FeedbackDetailResponse(BaseModel):
    feedback: FeedbackRecord


class UserFeedbackStats(BaseModel):
    total_applications: int = 0
    avg_probability: float = 0.0
    max_probability: int = 0
    min_probability: int = 0
    high_probability_count: int = 0


class CategoryCount(BaseModel):
    category: str
    count: int


class SystemFeedbackAnalytics(BaseModel):
    total_feedback: int = 0
    avg_probability: float = 0.0
    high_probability_percentage: float = 0.0
    top_strengths: list[CategoryCount] = Field(default_factory=list)
    common_gaps: list[CategoryCount] = Field(default_factory=list)


class Pagination(BaseModel):
    skip: int
    limit: int
    total: int


class AdminFeedbackResponse(BaseModel):
    feedback: list[FeedbackRecord]
    analytics: SystemFeedbackAnalytics | None = None
    pagination: Pagination
