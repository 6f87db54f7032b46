"""Pydantic models for the persisted documents and the canonical CV record.

Jobs and resumes are stored as JSON documents; `model_dump(mode="json",
by_alias=True)` is the storage form and `model_validate` reads it back.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from .config import settings


class ResumeStatus(str, Enum):
    """Review status derived from extraction confidence."""
    OK = "OK"
    NEEDS_REVIEW = "NEEDS_REVIEW"

    @classmethod
    def from_confidence(cls, confidence: float) -> ResumeStatus:
        if confidence < settings.normalization.review_threshold:
            return cls.NEEDS_REVIEW
        return cls.OK


class ExperienceEntry(BaseModel):
    """One position from the candidate's work history."""
    title: str | None = None
    company: str | None = None
    start: str | None = None
    end: str | None = None
    location: str | None = None
    description: str | None = None


class EducationEntry(BaseModel):
    """One course or degree."""
    course: str | None = None
    institution: str | None = None
    start: str | None = None
    end: str | None = None


class LanguageEntry(BaseModel):
    """A spoken language and its self-reported level."""
    language: str | None = None
    level: str | None = None


class ProfessionalRecord(BaseModel):
    """Canonical professional record built from an extraction.

    `seniority` and `years_experience` are modeled but never derived from the
    experience list.
    """
    seniority: str | None = None
    years_experience: int = 0
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    languages: list[LanguageEntry] = Field(default_factory=list)

    def flatten(self) -> dict[str, Any]:
        """Numbered-key view (`experience_1`, `skill_1`, ...) for legacy consumers."""
        flat: dict[str, Any] = {
            "seniority": self.seniority,
            "years_experience": self.years_experience,
        }
        for prefix, entries in (
            ("experience", self.experience),
            ("education", self.education),
            ("skill", self.skills),
            ("language", self.languages),
        ):
            for idx, entry in enumerate(entries, start=1):
                flat[f"{prefix}_{idx}"] = entry.model_dump() if isinstance(entry, BaseModel) else entry
        return flat


class Resume(BaseModel):
    """A stored candidate resume."""
    resume_id: str
    candidate_id: str
    file_path: str | None = None
    json_data: dict[str, Any] = Field(default_factory=dict)
    professional: ProfessionalRecord = Field(default_factory=ProfessionalRecord)
    raw_text_excerpt: str | None = None
    overall_confidence: float = Field(default=0.0, ge=0.0, le=0.99)
    created_at: datetime
    openai_request_id: str | None = None
    cv_hash: str | None = None

    @computed_field
    @property
    def status(self) -> ResumeStatus:
        return ResumeStatus.from_confidence(self.overall_confidence)

    @property
    def candidate_name(self) -> str | None:
        value = self.json_data.get("name") or self.json_data.get("nome")
        return value if isinstance(value, str) else None

    @property
    def email(self) -> str | None:
        value = self.json_data.get("email")
        return value if isinstance(value, str) else None

    @property
    def skills(self) -> list[str]:
        return self.professional.skills


class Job(BaseModel):
    """A job posting.

    Stored and exchanged with camelCase names; Python code uses snake_case.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    job_id: str | None = None
    title: str = Field(min_length=1)
    seniority: str = Field(min_length=1)
    location: str = Field(min_length=1)
    work_mode: str = Field(alias="workMode", min_length=1)
    contract_type: str = Field(alias="contractType", min_length=1)
    languages: list[str] = Field(default_factory=list)
    must_have: list[str] = Field(default_factory=list, alias="mustHave")
    nice_to_have: list[str] = Field(default_factory=list, alias="niceToHave")
    salary_min: float = Field(default=0, alias="salaryMin", ge=0)
    salary_max: float = Field(default=0, alias="salaryMax", ge=0)
    currency: str = ""
    keywords: list[str] = Field(default_factory=list)
    raw_text: str = Field(default="", alias="rawText")
    created_at: datetime | None = None

    @field_validator("languages", "must_have", "nice_to_have", "keywords")
    @classmethod
    def drop_blank_entries(cls, v: list[str]) -> list[str]:
        return [item.strip() for item in v if item.strip()]

    @model_validator(mode="after")
    def check_salary_range(self) -> Job:
        if self.salary_min > self.salary_max:
            raise ValueError(f"salaryMin ({self.salary_min}) exceeds salaryMax ({self.salary_max})")
        return self

    @property
    def relevant_terms(self) -> list[str]:
        """Skill and keyword terms used for experience relevance."""
        return [*self.must_have, *self.nice_to_have, *self.keywords]
