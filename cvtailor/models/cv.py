from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerateCvRequest(BaseModel):
    profile_id: int = Field(gt=0)
    job_description: str = Field(min_length=1)

    @field_validator("job_description")
    @classmethod
    def strip_job_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("job_description must not be blank")
        return value


class ProfileRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str | None = None


class CvRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    profile_id: int
    job_description: str
    pdf_path: str
    cv_data: dict[str, Any]
    created_at: datetime
    profile: ProfileRef | None = None
