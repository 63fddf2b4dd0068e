from __future__ import annotations

import logging
import time
from typing import Any

from pydantic import ValidationError

from cvforge.ai.types import LLMProvider
from cvforge.core.config import get_pipeline_value
from cvforge.core.errors import DocumentReadError, MissingConfiguration
from cvforge.core.store import (
    COLLECTION_OPTIMIZED_CVS,
    LocalStore,
    RecordExistsError,
    RecordStore,
)
from cvforge.schemas.job import JobDetails
from cvforge.schemas.optimization import (
    ApplicationStatus,
    JobSource,
    Language,
    MatchMode,
    OptimizedCVRecord,
)

from .analysis_status import get_parsed_cv_data
from .cv_optimizer import optimize_cv
from .job_analysis import analyze_job_details

logger = logging.getLogger(__name__)

MAX_ID_SUFFIX = 100


class RecordNotFound(LookupError):
    pass


def _now_ms() -> int:
    return int(time.time() * 1000)


def _insert_record(store: RecordStore, record: OptimizedCVRecord) -> OptimizedCVRecord:
    """Insert under `opt_<ms>`, suffixing `_<n>` when that id is already taken."""
    base_id = record.id
    for suffix in range(1, MAX_ID_SUFFIX + 1):
        try:
            store.add_record(COLLECTION_OPTIMIZED_CVS, record.id, record.to_payload())
            return record
        except RecordExistsError:
            record = record.model_copy(update={"id": f"{base_id}_{suffix}"})
    store.add_record(COLLECTION_OPTIMIZED_CVS, record.id, record.to_payload())
    return record


def min_job_description_chars() -> int:
    return int(get_pipeline_value("optimization.min_job_description_chars", 100))


async def run_optimization(
    provider: LLMProvider,
    store: LocalStore,
    *,
    job_description: str,
    mode: MatchMode,
    language: Language,
    job_url: str | None = None,
    job_details: JobDetails | None = None,
    retry_count: int | None = None,
) -> OptimizedCVRecord:
    """Optimize the stored CV for one job and persist the result as a new record."""
    description = (job_description or "").strip()
    if len(description) < min_job_description_chars():
        raise DocumentReadError(
            f"The job description must contain at least {min_job_description_chars()} characters.",
            code="job_text_too_short",
        )

    original = get_parsed_cv_data(store)
    if original is None or original.is_empty():
        raise MissingConfiguration("Import a CV first.", code="cv_missing")

    details = job_details or await analyze_job_details(description, provider)
    result = await optimize_cv(
        original,
        description,
        mode,
        language,
        provider,
        store=store,
        retry_count=retry_count,
    )

    now = _now_ms()
    source: JobSource = "url" if job_url else "paste"
    record = OptimizedCVRecord(
        id=f"opt_{now}",
        job_title=details.job_title or result.job_title,
        company=details.company or result.company,
        job_source=source,
        job_url=job_url,
        job_description=description,
        job_details=details,
        original_cv=original,
        optimized_cv=result.optimized_cv,
        match_mode=mode,
        language=language,
        match_score=result.match_score,
        changes=result.changes,
        suggestions=result.suggestions,
        created_at=now,
        updated_at=now,
    )
    record = _insert_record(store, record)
    logger.info("optimization_saved id=%s score=%s", record.id, record.match_score)
    return record


def _load(payload: dict[str, Any] | None, record_id: str) -> OptimizedCVRecord:
    if payload is None:
        raise RecordNotFound(record_id)
    try:
        return OptimizedCVRecord.model_validate(payload)
    except ValidationError as exc:
        raise RecordNotFound(record_id) from exc


def list_optimizations(store: RecordStore) -> list[OptimizedCVRecord]:
    records: list[OptimizedCVRecord] = []
    for payload in store.list_records(COLLECTION_OPTIMIZED_CVS):
        try:
            records.append(OptimizedCVRecord.model_validate(payload))
        except ValidationError:
            logger.warning("optimization_record_unreadable id=%s", payload.get("id"))
    return records


def get_optimization(store: RecordStore, record_id: str) -> OptimizedCVRecord:
    return _load(store.get_record(COLLECTION_OPTIMIZED_CVS, record_id), record_id)


def update_optimization_status(
    store: RecordStore, record_id: str, status: ApplicationStatus
) -> OptimizedCVRecord:
    record = get_optimization(store, record_id)
    now = _now_ms()
    update: dict[str, Any] = {"status": status, "updated_at": now}
    if status == "sent":
        update["sent_at"] = now
    updated = record.model_copy(update=update)
    store.put_record(COLLECTION_OPTIMIZED_CVS, record_id, updated.to_payload())
    logger.info("optimization_status_updated id=%s status=%s", record_id, status)
    return updated


def delete_optimization(store: RecordStore, record_id: str) -> None:
    if not store.delete_record(COLLECTION_OPTIMIZED_CVS, record_id):
        raise RecordNotFound(record_id)
    logger.info("optimization_deleted id=%s", record_id)
