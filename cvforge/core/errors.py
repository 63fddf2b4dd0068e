from __future__ import annotations

from typing import Literal

ErrorSource = Literal["document", "provider", "credential", "internal"]


class PipelineError(RuntimeError):
    source: ErrorSource = "internal"
    default_code = "pipeline_error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.code = code or self.default_code


class DocumentReadError(PipelineError):
    source: ErrorSource = "document"
    default_code = "document_unreadable"


class ExtractionFailure(PipelineError):
    source: ErrorSource = "document"
    default_code = "insufficient_text"

    def __init__(self, message: str, *, characters: int = 0, code: str | None = None):
        super().__init__(message, code=code)
        self.characters = characters


class OCRFailure(PipelineError):
    source: ErrorSource = "document"
    default_code = "ocr_failed"


class ClassificationRejection(PipelineError):
    source: ErrorSource = "document"
    default_code = "classification_rejected"

    def __init__(self, message: str, *, confidence: float = 0.0, reason: str = "", code: str | None = None):
        super().__init__(message, code=code)
        self.confidence = confidence
        self.reason = reason


class StructuredParseFailure(PipelineError):
    source: ErrorSource = "provider"
    default_code = "structured_parse_failed"


class OptimizationParseFailure(PipelineError):
    source: ErrorSource = "provider"
    default_code = "optimization_parse_failed"


class ProviderTransportFailure(PipelineError):
    source: ErrorSource = "provider"
    default_code = "provider_unavailable"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
        super().__init__(message, code=code)
        self.status_code = status_code


class CryptoFailure(PipelineError):
    source: ErrorSource = "credential"
    default_code = "credential_unreadable"


class MissingConfiguration(PipelineError):
    source: ErrorSource = "credential"
    default_code = "provider_not_configured"
