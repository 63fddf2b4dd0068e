from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .coerce import as_entry_list, as_optional_text, as_text, as_text_list


class _ResumePart(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ExperienceEntry(_ResumePart):
    title: str = ""
    company: str = ""
    period: str = ""
    description: str | list[str] = ""

    @field_validator("title", "company", "period", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return as_text(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: Any) -> str | list[str]:
        if isinstance(value, (list, tuple)):
            return as_text_list(value)
        return as_text(value)


class EducationEntry(_ResumePart):
    degree: str = ""
    institution: str = ""
    period: str = ""
    description: str = ""

    @field_validator("degree", "institution", "period", "description", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return as_text(value)


class LanguageEntry(_ResumePart):
    name: str = ""
    level: str = ""

    @field_validator("name", "level", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return as_text(value)


class LinkEntry(_ResumePart):
    name: str = ""
    url: str = ""
    icon: str | None = None

    @field_validator("name", "url", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return as_text(value)

    @field_validator("icon", mode="before")
    @classmethod
    def _icon(cls, value: Any) -> str | None:
        return as_optional_text(value)


class StructuredResume(_ResumePart):
    name: str = ""
    email: str = ""
    phone: str = ""
    about: str = ""
    skills: list[str] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    languages: list[LanguageEntry] = Field(default_factory=list)
    hobbies: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    links: list[LinkEntry] = Field(default_factory=list)

    @field_validator("name", "email", "phone", "about", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return as_text(value)

    @field_validator("skills", "hobbies", "certifications", mode="before")
    @classmethod
    def _text_list(cls, value: Any) -> list[str]:
        return as_text_list(value)

    @field_validator("experience", "education", "languages", "links", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> list[Any]:
        return as_entry_list(value)

    @classmethod
    def from_model_output(cls, data: Mapping[str, Any]) -> "StructuredResume":
        # Missing keys fall back to the all-empty defaults.
        return cls.model_validate(dict(data))

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def is_empty(self) -> bool:
        return self == StructuredResume()
