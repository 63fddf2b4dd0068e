from .analysis import AnalysisState, AnalysisStatus, ClassificationResult
from .credentials import (
    EncryptedCredential,
    EncryptedPayload,
    PlaintextCredential,
    StoredCredential,
    StoredCredentialConfig,
    UserInfo,
)
from .job import JobDetails
from .optimization import (
    ApplicationStatus,
    JobSource,
    Language,
    MatchMode,
    OptimizationResult,
    OptimizedCVRecord,
)
from .resume import EducationEntry, ExperienceEntry, LanguageEntry, LinkEntry, StructuredResume

__all__ = [
    "AnalysisState",
    "AnalysisStatus",
    "ClassificationResult",
    "EncryptedPayload",
    "PlaintextCredential",
    "EncryptedCredential",
    "StoredCredential",
    "StoredCredentialConfig",
    "UserInfo",
    "JobDetails",
    "MatchMode",
    "Language",
    "JobSource",
    "ApplicationStatus",
    "OptimizationResult",
    "OptimizedCVRecord",
    "StructuredResume",
    "ExperienceEntry",
    "EducationEntry",
    "LanguageEntry",
    "LinkEntry",
]
