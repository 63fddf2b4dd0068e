from __future__ import annotations

import asyncio
import logging

from cvforge.ai.types import LLMProvider
from cvforge.core.errors import ExtractionFailure, PipelineError
from cvforge.core.store import KeyValueStore
from cvforge.parsing.models import ExtractedText, RawDocument
from cvforge.parsing.ocr import ocr_document
from cvforge.parsing.parse import extract_native_text, require_min_text
from cvforge.schemas.credentials import UserInfo
from cvforge.schemas.resume import StructuredResume

from .analysis_status import AnalysisTracker, StatusObserver, save_parsed_cv_data
from .document_classifier import RESUME, classify_document, require_match
from .profile import load_user_info
from .resume_extractor import extract_structured_resume

logger = logging.getLogger(__name__)

PROGRESS_EXTRACTING = 10
PROGRESS_OCR = 15
PROGRESS_CLASSIFYING = 30
PROGRESS_EXTRACTING_FIELDS = 60
PROGRESS_SAVING = 80

OCR_RUNNING_MESSAGE = "Scanned document detected, running OCR"
OCR_DONE_MESSAGE = "Text extracted via OCR"
CANCELLED_MESSAGE = "Analysis cancelled"
UNEXPECTED_MESSAGE = "Unexpected error while analyzing the CV."


def ocr_page_message(page: int, total: int) -> str:
    return f"Running OCR on page {page}/{total}"


async def extract_document_text(
    document: RawDocument,
    tracker: AnalysisTracker | None = None,
    *,
    min_chars: int | None = None,
) -> ExtractedText:
    """Native extraction first; OCR only when the text layer is too sparse."""
    native = await asyncio.to_thread(extract_native_text, document)
    try:
        return require_min_text(native, min_chars)
    except ExtractionFailure as exc:
        logger.info("cv_analysis_ocr_fallback chars=%s", exc.characters)

    if tracker is None:
        return await ocr_document(document, min_chars=min_chars)

    tracker.advance("extracting", PROGRESS_OCR, message=OCR_RUNNING_MESSAGE)

    async def report_page(page: int, total: int) -> None:
        tracker.advance("extracting", PROGRESS_OCR, message=ocr_page_message(page, total))

    return await ocr_document(document, min_chars=min_chars, on_page=report_page)


async def analyze_cv_file(
    document: RawDocument,
    provider: LLMProvider,
    store: KeyValueStore,
    *,
    hints: UserInfo | None = None,
    observer: StatusObserver | None = None,
    min_chars: int | None = None,
    threshold: float | None = None,
) -> StructuredResume:
    """Run the whole ingestion: extract, gate, structure, persist.

    Every failure is written to the persisted status before it propagates.
    """
    tracker = AnalysisTracker(store, observer)
    tracker.reset()

    try:
        tracker.advance("extracting", PROGRESS_EXTRACTING)
        extracted = await extract_document_text(document, tracker, min_chars=min_chars)

        tracker.advance(
            "analyzing",
            PROGRESS_CLASSIFYING,
            message=OCR_DONE_MESSAGE if extracted.ocr_derived else None,
        )
        classification = await classify_document(extracted.text, provider, RESUME)
        require_match(classification, RESUME, threshold)

        tracker.advance("analyzing", PROGRESS_EXTRACTING_FIELDS)
        identity = hints if hints is not None else load_user_info(store)
        resume = await extract_structured_resume(extracted.text, provider, identity)

        tracker.advance("analyzing", PROGRESS_SAVING)
        save_parsed_cv_data(store, resume)
        tracker.complete(resume)
    except asyncio.CancelledError:
        logger.info("cv_analysis_cancelled")
        tracker.fail(CANCELLED_MESSAGE)
        raise
    except PipelineError as exc:
        logger.warning("cv_analysis_failed source=%s code=%s", exc.source, exc.code)
        tracker.fail(str(exc))
        raise
    except Exception:
        logger.exception("cv_analysis_crashed")
        tracker.fail(UNEXPECTED_MESSAGE)
        raise

    logger.info(
        "cv_analysis_completed ocr=%s chars=%s", extracted.ocr_derived, extracted.char_count
    )
    return resume
