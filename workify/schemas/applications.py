from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ApplicationAction = Literal["approve", "reject"]


class ApplicationRequest(BaseModel):
    tailor_id: str = Field(min_length=1, max_length=64)
    action: ApplicationAction


class ApplicationResponse(BaseModel):
    message: str
    application_id: str | None = None
