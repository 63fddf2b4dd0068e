from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from cvforge.core.config import get_pipeline_value
from cvforge.core.errors import OCRFailure

from .models import ExtractedText, RawDocument
from .parse import min_text_chars

logger = logging.getLogger(__name__)

PageCallback = Callable[[int, int], Awaitable[None]]


@dataclass(frozen=True)
class OCRSettings:
    render_scale: float = 3.0
    contrast_shift: int = 20
    binarize_threshold: int = 128
    languages: str = "fra+eng"
    page_segmentation_mode: int = 3

    @classmethod
    def from_config(cls) -> "OCRSettings":
        return cls(
            render_scale=float(get_pipeline_value("ocr.render_scale", 3.0)),
            contrast_shift=int(get_pipeline_value("ocr.contrast_shift", 20)),
            binarize_threshold=int(get_pipeline_value("ocr.binarize_threshold", 128)),
            languages=str(get_pipeline_value("ocr.languages", "fra+eng")),
            page_segmentation_mode=int(get_pipeline_value("ocr.page_segmentation_mode", 3)),
        )

    def tesseract_config(self) -> str:
        return f"--psm {self.page_segmentation_mode} -c preserve_interword_spaces=1"


def preprocess_for_ocr(image: Image.Image, options: OCRSettings | None = None) -> Image.Image:
    """Grayscale, push values away from mid-gray, then binarize to pure black/white."""
    opts = options or OCRSettings()
    shift = opts.contrast_shift
    threshold = opts.binarize_threshold

    # PIL "L" uses the ITU-R 601-2 luma weights (0.299, 0.587, 0.114).
    gray = image.convert("L")
    contrasted = gray.point(
        lambda v: max(0, v - shift) if v < 128 else min(255, v + shift)
    )
    return contrasted.point(lambda v: 255 if v > threshold else 0)


def _render_page(document: fitz.Document, index: int, scale: float) -> Image.Image:
    page = document.load_page(index)
    pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
    return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)


def ocr_engine_version() -> str | None:
    try:
        return str(pytesseract.get_tesseract_version())
    except (pytesseract.TesseractNotFoundError, OSError):
        return None


def _recognize(image: Image.Image, options: OCRSettings) -> str:
    return pytesseract.image_to_string(
        image, lang=options.languages, config=options.tesseract_config()
    )


async def ocr_document(
    document: RawDocument,
    *,
    options: OCRSettings | None = None,
    min_chars: int | None = None,
    on_page: PageCallback | None = None,
) -> ExtractedText:
    """Run OCR page by page and return OCR-flagged text.

    Pages are processed strictly in order, each step off the event loop; a
    cancellation lands between pages.
    """
    opts = options or OCRSettings.from_config()
    threshold = min_text_chars() if min_chars is None else min_chars

    try:
        pdf = fitz.open(stream=document.content, filetype="pdf")
    except (fitz.FileDataError, RuntimeError, ValueError) as exc:
        raise OCRFailure("The document could not be rendered for OCR.", code="ocr_render_failed") from exc

    pages: list[str] = []
    try:
        total = pdf.page_count
        for index in range(total):
            if on_page is not None:
                await on_page(index + 1, total)
            try:
                image = await asyncio.to_thread(_render_page, pdf, index, opts.render_scale)
                processed = preprocess_for_ocr(image, opts)
                text = await asyncio.to_thread(_recognize, processed, opts)
            except pytesseract.TesseractNotFoundError as exc:
                raise OCRFailure(
                    "OCR engine is not installed on this machine.", code="ocr_unavailable"
                ) from exc
            except (pytesseract.TesseractError, RuntimeError, ValueError, OSError) as exc:
                logger.warning("ocr_page_failed page=%s error=%s", index + 1, type(exc).__name__)
                raise OCRFailure(
                    f"OCR failed on page {index + 1}.", code="ocr_failed"
                ) from exc
            pages.append(text.strip())
    finally:
        pdf.close()

    joined = "\n".join(page for page in pages if page)
    extracted = ExtractedText(text=joined, pages=pages, ocr_derived=True)
    logger.info("ocr_completed pages=%s chars=%s", len(pages), extracted.char_count)

    if extracted.char_count < threshold:
        raise OCRFailure(
            "No readable text was found in the document, even with OCR. "
            "It may be a low-quality scan.",
            code="ocr_insufficient_text",
        )
    return extracted
