from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

JobStatus = Literal["pending", "processed", "not_a_good_fit"]
TailorStatus = Literal["pending_review", "approved", "rejected"]
ProcessStatus = Literal["processed", "not_a_good_fit", "failed"]


class JobCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    company: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=10, max_length=10000)

    @field_validator("title", "company", "description")
    @classmethod
    def _strip(cls, value: str) -> str:
        clean = value.strip()
        if not clean:
            raise ValueError("must not be blank")
        return clean


class JobCreateResponse(BaseModel):
    id: str


class Job(BaseModel):
    id: str
    user_id: str
    title: str
    company: str
    description: str
    status: JobStatus = "pending"
    fit_score: int | None = Field(default=None, ge=0, le=100)
    created_at: datetime
    updated_at: datetime


class Tailor(BaseModel):
    id: str
    job_id: str
    user_id: str
    tailored_resume: str = ""
    cover_letter: str = ""
    portfolio: str = ""
    fit_score: int = Field(ge=0, le=100)
    token_usage: int = 0
    status: TailorStatus = "pending_review"
    created_at: datetime
    updated_at: datetime


class ProcessJobResponse(BaseModel):
    message: str
    fit_score: int
    status: ProcessStatus
    tailor_id: str | None = None
