from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .coerce import as_optional_text, as_text, as_text_list

NOT_SPECIFIED = "Not specified"


class JobDetails(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    job_title: str = Field(default="", alias="jobTitle")
    company: str = ""
    location: str | None = None
    keywords: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    required_skills: list[str] = Field(default_factory=list, alias="requiredSkills")
    preferred_skills: list[str] = Field(default_factory=list, alias="preferredSkills")
    profile: str = ""
    missions: list[str] = Field(default_factory=list)
    contract_type: str | None = Field(default=None, alias="contractType")
    salary: str | None = None
    benefits: list[str] = Field(default_factory=list)

    @field_validator("job_title", "company", "profile", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return as_text(value)

    @field_validator("location", "contract_type", "salary", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        return as_optional_text(value)

    @field_validator(
        "keywords",
        "tools",
        "required_skills",
        "preferred_skills",
        "missions",
        "benefits",
        mode="before",
    )
    @classmethod
    def _text_list(cls, value: Any) -> list[str]:
        return as_text_list(value)

    @classmethod
    def unspecified(cls) -> "JobDetails":
        return cls(job_title=NOT_SPECIFIED, company=NOT_SPECIFIED, profile=NOT_SPECIFIED)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
