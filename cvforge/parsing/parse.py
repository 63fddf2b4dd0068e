from __future__ import annotations

import logging
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import FileNotDecryptedError, PyPdfError

from cvforge.core.config import get_pipeline_value
from cvforge.core.errors import DocumentReadError, ExtractionFailure

from .models import DocumentMetadata, ExtractedText, RawDocument

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"
PAGE_SEPARATOR = "\n\n"
DEFAULT_MIN_TEXT_CHARS = 50

_READ_ERRORS = (PyPdfError, ValueError, KeyError, TypeError, OSError)


def min_text_chars() -> int:
    return int(get_pipeline_value("extraction.min_text_chars", DEFAULT_MIN_TEXT_CHARS))


def validate_pdf_signature(content: bytes) -> None:
    if not content:
        raise DocumentReadError("The uploaded file is empty.", code="empty_document")
    # Some producers prepend junk bytes before the header.
    if PDF_MAGIC not in content[:1024]:
        raise DocumentReadError(
            "The uploaded file is not a PDF document.", code="not_a_pdf"
        )


def _clean_meta(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _read_metadata(reader: PdfReader) -> DocumentMetadata:
    try:
        info = reader.metadata
    except _READ_ERRORS:
        return DocumentMetadata()
    if info is None:
        return DocumentMetadata()
    return DocumentMetadata(
        title=_clean_meta(info.title),
        author=_clean_meta(info.author),
        subject=_clean_meta(info.subject),
    )


def extract_native_text(document: RawDocument) -> ExtractedText:
    """Read the text layer of every page in order.

    Raises DocumentReadError when the file cannot be opened at all. Sparse text is
    not an error here; callers decide with `require_min_text`.
    """
    validate_pdf_signature(document.content)

    try:
        reader = PdfReader(BytesIO(document.content))
        if reader.is_encrypted:
            # Owner-password-only PDFs open with an empty user password.
            reader.decrypt("")
        pages: list[str] = []
        for page in reader.pages:
            pages.append((page.extract_text() or "").strip())
    except FileNotDecryptedError as exc:
        raise DocumentReadError(
            "The PDF is password-protected and cannot be read.", code="encrypted_document"
        ) from exc
    except _READ_ERRORS as exc:
        logger.warning("pdf_read_failed error=%s", type(exc).__name__)
        raise DocumentReadError(
            "The PDF could not be read. The file may be corrupt or use an unsupported encoding.",
            code="corrupt_document",
        ) from exc

    text = PAGE_SEPARATOR.join(page for page in pages if page)
    extracted = ExtractedText(text=text, pages=pages, metadata=_read_metadata(reader))
    logger.info(
        "pdf_native_extraction pages=%s chars=%s", len(pages), extracted.char_count
    )
    return extracted


def require_min_text(extracted: ExtractedText, min_chars: int | None = None) -> ExtractedText:
    threshold = min_text_chars() if min_chars is None else min_chars
    if extracted.char_count < threshold:
        raise ExtractionFailure(
            "Not enough text could be extracted from the document. "
            "It may be a scanned image.",
            characters=extracted.char_count,
        )
    return extracted
