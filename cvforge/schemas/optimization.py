from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .coerce import as_text, as_text_list, clamp_int
from .job import JobDetails
from .resume import StructuredResume

MatchMode = Literal["light", "normal", "aggressive"]
Language = Literal["fr", "en"]
JobSource = Literal["paste", "url"]
ApplicationStatus = Literal["optimized", "sent", "interview", "rejected", "offer"]

MATCH_MODES: tuple[str, ...] = ("light", "normal", "aggressive")


class OptimizationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    optimized_cv: StructuredResume = Field(alias="optimizedCV")
    job_title: str = Field(alias="jobTitle", min_length=1)
    company: str = ""
    match_score: int = Field(default=0, ge=0, le=100, alias="matchScore")
    changes: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    @field_validator("job_title", "company", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return as_text(value)

    @field_validator("match_score", mode="before")
    @classmethod
    def _score(cls, value: Any) -> int:
        return clamp_int(value, low=0, high=100, default=0)

    @field_validator("changes", "suggestions", mode="before")
    @classmethod
    def _text_list(cls, value: Any) -> list[str]:
        return as_text_list(value)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class OptimizedCVRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    job_title: str = Field(alias="jobTitle")
    company: str
    job_source: JobSource = Field(alias="jobSource")
    job_url: str | None = Field(default=None, alias="jobUrl")
    job_description: str = Field(alias="jobDescription")
    job_details: JobDetails | None = Field(default=None, alias="jobDetails")
    original_cv: StructuredResume = Field(alias="originalCV")
    optimized_cv: StructuredResume = Field(alias="optimizedCV")
    match_mode: MatchMode = Field(alias="matchMode")
    language: Language
    match_score: int = Field(ge=0, le=100, alias="matchScore")
    status: ApplicationStatus = "optimized"
    sent_at: int | None = Field(default=None, alias="sentAt")
    changes: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
