from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class LinkItem(BaseModel):
    label: str
    url: str


class EducationItem(BaseModel):
    institution: str
    degree: str
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None


class ExperienceItem(BaseModel):
    company: str
    position: str
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None


class ProjectItem(BaseModel):
    name: str
    description: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    technologies: list[str] = Field(default_factory=list)


class ActivityItem(BaseModel):
    name: str
    description: str | None = None


class VolunteeringItem(BaseModel):
    organization: str
    role: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None


def _clean_name(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("profile_name must not be blank")
    return value


def _clean_skills(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    return [skill.strip() for skill in value if skill and skill.strip()]


class ProfileCreate(BaseModel):
    profile_name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    full_name: str | None = None
    title: str | None = None
    phone: str | None = None
    location: str | None = None
    summary: str | None = None
    skills: list[str] = Field(default_factory=list)
    links: list[LinkItem] = Field(default_factory=list)
    education: list[EducationItem] = Field(default_factory=list)
    experiences: list[ExperienceItem] = Field(default_factory=list)
    projects: list[ProjectItem] = Field(default_factory=list)
    activities: list[ActivityItem] = Field(default_factory=list)
    volunteering: list[VolunteeringItem] = Field(default_factory=list)

    @field_validator("profile_name")
    @classmethod
    def clean_profile_name(cls, value: str | None) -> str | None:
        return _clean_name(value)

    @field_validator("skills")
    @classmethod
    def clean_skill_list(cls, value: list[str] | None) -> list[str] | None:
        return _clean_skills(value)


class ProfileUpdate(BaseModel):
    """Partial update: only fields present in the request body are applied."""

    profile_name: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    full_name: str | None = None
    title: str | None = None
    phone: str | None = None
    location: str | None = None
    summary: str | None = None
    skills: list[str] | None = None
    links: list[LinkItem] | None = None
    education: list[EducationItem] | None = None
    experiences: list[ExperienceItem] | None = None
    projects: list[ProjectItem] | None = None
    activities: list[ActivityItem] | None = None
    volunteering: list[VolunteeringItem] | None = None

    @field_validator("profile_name")
    @classmethod
    def clean_profile_name(cls, value: str | None) -> str | None:
        return _clean_name(value)

    @field_validator("skills")
    @classmethod
    def clean_skill_list(cls, value: list[str] | None) -> list[str] | None:
        return _clean_skills(value)


class ProfileSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    profile_name: str
    created_at: datetime
    updated_at: datetime


class ProfileRead(ProfileSummary):
    email: str
    full_name: str | None = None
    title: str | None = None
    phone: str | None = None
    location: str | None = None
    summary: str | None = None
    skills: list[str] = Field(default_factory=list)
    links: list[LinkItem] = Field(default_factory=list)
    education: list[EducationItem] = Field(default_factory=list)
    experiences: list[ExperienceItem] = Field(default_factory=list)
    projects: list[ProjectItem] = Field(default_factory=list)
    activities: list[ActivityItem] = Field(default_factory=list)
    volunteering: list[VolunteeringItem] = Field(default_factory=list)
