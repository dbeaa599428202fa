from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

WorkType = Literal["remote", "hybrid", "onsite"]


class ProfileUpsertRequest(BaseModel):
    resume_text: str = Field(min_length=10, max_length=50000)


class ProfileResponse(BaseModel):
    user_id: str
    resume_text: str


class Intent(BaseModel):
    roles: list[str] = Field(default_factory=list)
    dream_companies: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    work_type: WorkType | None = None


DEFAULT_INTENT = Intent(roles=[], dream_companies=[], locations=[], work_type="remote")


class IntentUpsertRequest(BaseModel):
    roles: list[str] = Field(min_length=1)
    dream_companies: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    work_type: WorkType | None = None

    @field_validator("roles", "dream_companies", "locations")
    @classmethod
    def _validate_items(cls, value: list[str]) -> list[str]:
        clean = [item.strip() for item in value if item and item.strip()]
        for item in clean:
            if len(item) > 100:
                raise ValueError("entries must be at most 100 characters")
        return clean

    @field_validator("roles")
    @classmethod
    def _require_role(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("At least one role is required")
        return value

    def to_intent(self) -> Intent:
        return Intent(**self.model_dump())
