from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .job import JobDetails
from .optimization import ApplicationStatus, Language, MatchMode


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AIConfigRequest(_Payload):
    base_url: str = Field(default="", alias="baseURL", max_length=500)
    model: str = Field(min_length=1, max_length=200)
    api_key: str = Field(alias="apiKey", min_length=1, max_length=500)
    retry_count: int | None = Field(default=None, alias="retryCount", ge=0, le=10)


class AIConfigResponse(_Payload):
    base_url: str | None = Field(default=None, alias="baseURL")
    model: str | None = None
    provider: str | None = None
    credential_status: str = Field(alias="credentialStatus")
    retry_count: int = Field(alias="retryCount")


class PromptSettingsPayload(_Payload):
    system_prompt: str | None = Field(default=None, alias="systemPrompt")
    light: str | None = None
    normal: str | None = None
    aggressive: str | None = None
    retry_count: int | None = Field(default=None, alias="retryCount", ge=0, le=10)


class ModelOut(BaseModel):
    id: str
    created: int
    owned_by: str


class ModelsResponse(BaseModel):
    models: list[ModelOut]


class ModelTestRequest(_Payload):
    base_url: str | None = Field(default=None, alias="baseURL")
    model: str | None = None
    api_key: str | None = Field(default=None, alias="apiKey")


class ModelTestResponse(BaseModel):
    ok: bool
    provider: str
    reply: str


class JobImportRequest(_Payload):
    text: str | None = Field(default=None, max_length=200_000)
    url: str | None = Field(default=None, max_length=2000)


class JobImportResponse(_Payload):
    description: str
    is_job_posting: bool = Field(alias="isJobPosting")
    confidence: float
    heuristic: bool
    source: str
    url: str | None = None


class JobDetailsRequest(_Payload):
    text: str = Field(min_length=1, max_length=200_000)


class OptimizationRequest(_Payload):
    job_description: str = Field(alias="jobDescription", max_length=200_000)
    mode: MatchMode = "normal"
    language: Language = "en"
    job_url: str | None = Field(default=None, alias="jobUrl", max_length=2000)
    job_details: JobDetails | None = Field(default=None, alias="jobDetails")
    retry_count: int | None = Field(default=None, alias="retryCount", ge=0, le=10)


class StatusUpdateRequest(BaseModel):
    status: ApplicationStatus
