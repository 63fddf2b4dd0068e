from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .coerce import clamp_unit
from .resume import StructuredResume

AnalysisState = Literal["idle", "extracting", "analyzing", "completed", "error"]
TERMINAL_STATES: frozenset[str] = frozenset({"completed", "error"})


class AnalysisStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: AnalysisState = "idle"
    progress: int = Field(default=0, ge=0, le=100)
    error: str | None = None
    message: str | None = None
    last_updated: int = Field(default=0, alias="lastUpdated")
    parsed_data: StructuredResume | None = Field(default=None, alias="parsedData")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ClassificationResult(BaseModel):
    is_match: bool
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str = ""
    heuristic: bool = False

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        return clamp_unit(value)

    def passes(self, threshold: float) -> bool:
        return self.is_match and self.confidence >= threshold
