from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _AIPayload(BaseModel):
    """Base for models filled from AI output.

    The prompts ask for camelCase keys; snake_case is accepted too. ``null``
    values fall back to field defaults.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


def _as_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _as_text_list(value: Any) -> Any:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    return value


class ExperienceEntry(_AIPayload):
    company: str = ""
    title: str = ""
    duration: str = ""
    bullets: list[str] = Field(default_factory=list)

    _coerce_text = field_validator("company", "title", "duration", mode="before")(_as_text)
    _coerce_list = field_validator("bullets", mode="before")(_as_text_list)


class EducationEntry(_AIPayload):
    institution: str = ""
    degree: str = ""
    field: str = ""
    year: str = ""

    _coerce_text = field_validator("institution", "degree", "field", "year", mode="before")(_as_text)


class ProjectEntry(_AIPayload):
    name: str = ""
    description: str = ""
    technologies: list[str] = Field(default_factory=list)

    _coerce_list = field_validator("technologies", mode="before")(_as_text_list)


class ParsedResume(_AIPayload):
    name: str = ""
    email: str = ""
    phone: str = ""
    summary: str = ""
    skills: list[str] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)

    _coerce_text = field_validator("name", "email", "phone", "summary", mode="before")(_as_text)
    _coerce_list = field_validator("skills", mode="before")(_as_text_list)


def _clamp_score(value: Any) -> Any:
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError:
            return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise ValueError("score must be a finite number")
        return max(0, min(100, int(round(value))))
    return value


class JobFitAnalysis(_AIPayload):
    match_score: int = Field(default=0, ge=0, le=100, alias="matchScore")
    matched_skills: list[str] = Field(default_factory=list, alias="matchedSkills")
    missing_skills: list[str] = Field(default_factory=list, alias="missingSkills")
    recommendations: str = ""
    ats_score: int = Field(default=0, ge=0, le=100, alias="atsScore")
    keyword_alignment: str = Field(default="", alias="keywordAlignment")

    _coerce_scores = field_validator("match_score", "ats_score", mode="before")(_clamp_score)
    _coerce_list = field_validator("matched_skills", "missing_skills", mode="before")(_as_text_list)

    @field_validator("recommendations", mode="before")
    @classmethod
    def _join_recommendations(cls, value: Any) -> Any:
        if isinstance(value, list):
            return "\n".join(str(item) for item in value if item is not None)
        return value


class ImprovedBullets(_AIPayload):
    original_experience: str = Field(default="", alias="originalExperience")
    improved_bullets: list[str] = Field(default_factory=list, alias="improvedBullets")

    _coerce_list = field_validator("improved_bullets", mode="before")(_as_text_list)


class ResumeImprovement(_AIPayload):
    improved_summary: str = Field(default="", alias="improvedSummary")
    improved_bullets: list[ImprovedBullets] = Field(default_factory=list, alias="improvedBullets")
    suggested_skills: list[str] = Field(default_factory=list, alias="suggestedSkills")
    formatting_tips: list[str] = Field(default_factory=list, alias="formattingTips")

    _coerce_list = field_validator("suggested_skills", "formatting_tips", mode="before")(_as_text_list)


class ParseResumeRequest(BaseModel):
    resume_text: str = Field(min_length=1, max_length=200000)


class JobFitRequest(BaseModel):
    parsed_resume: dict[str, Any]
    job_title: str = Field(min_length=1, max_length=300)
    job_description: str = Field(min_length=1, max_length=50000)


class DocumentSummary(BaseModel):
    doc_id: str
    filename: str
    source_type: str
    pages: int | None = None
    warnings: list[str] = Field(default_factory=list)
    char_count: int


class ParseResumeResponse(BaseModel):
    parsed_data: ParsedResume


class UploadResumeResponse(BaseModel):
    document: DocumentSummary
    parsed_data: ParsedResume


class JobFitResponse(BaseModel):
    analysis: JobFitAnalysis


class ImproveResumeResponse(BaseModel):
    improvement: ResumeImprovement
