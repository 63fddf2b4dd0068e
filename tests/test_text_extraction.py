import asyncio
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

from PIL import Image

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytesseract  # noqa: E402

from cvforge.core.errors import DocumentReadError, ExtractionFailure, OCRFailure  # noqa: E402
from cvforge.parsing.models import RawDocument  # noqa: E402
from cvforge.parsing.ocr import OCRSettings, ocr_document, preprocess_for_ocr  # noqa: E402
from cvforge.parsing.parse import extract_native_text, require_min_text, validate_pdf_signature  # noqa: E402
from cvforge.services.cv_analysis import extract_document_text  # noqa: E402
from provider_fakes import RESUME_TEXT, make_blank_pdf, make_text_pdf  # noqa: E402

OCR_PAGE_TEXT = "Jean Dupont\nExpérience professionnelle\nDéveloppeur Python chez Exemple SA 2018-2023"


class NativeExtractionTests(unittest.TestCase):
    def test_text_layer_is_extracted_in_page_order(self):
        content = make_text_pdf(RESUME_TEXT, pages=2)
        extracted = extract_native_text(RawDocument(content=content, filename="cv.pdf"))
        self.assertEqual(len(extracted.pages), 2)
        self.assertIn("Jane Doe", extracted.text)
        self.assertIn("Acme Corp", extracted.pages[1])
        self.assertFalse(extracted.ocr_derived)
        self.assertGreaterEqual(require_min_text(extracted).char_count, 50)

    def test_blank_pdf_is_below_threshold(self):
        extracted = extract_native_text(RawDocument(content=make_blank_pdf()))
        with self.assertRaises(ExtractionFailure) as ctx:
            require_min_text(extracted, 50)
        self.assertEqual(ctx.exception.characters, 0)

    def test_signature_checks(self):
        with self.assertRaises(DocumentReadError) as ctx:
            validate_pdf_signature(b"")
        self.assertEqual(ctx.exception.code, "empty_document")
        with self.assertRaises(DocumentReadError) as ctx:
            validate_pdf_signature(b"PK\x03\x04 zip archive")
        self.assertEqual(ctx.exception.code, "not_a_pdf")

    def test_corrupt_pdf_is_unreadable(self):
        with self.assertRaises(DocumentReadError) as ctx:
            extract_native_text(RawDocument(content=b"%PDF-1.7\nthis is not really a pdf"))
        self.assertEqual(ctx.exception.code, "corrupt_document")

    def test_non_pdf_media_type_is_rejected(self):
        with self.assertRaises(ValueError):
            RawDocument(content=b"%PDF-1.4", media_type="image/png")


class PreprocessTests(unittest.TestCase):
    def test_output_is_binary_grayscale(self):
        image = Image.new("RGB", (4, 1))
        image.putpixel((0, 0), (10, 10, 10))
        image.putpixel((1, 0), (120, 120, 120))
        image.putpixel((2, 0), (130, 130, 130))
        image.putpixel((3, 0), (250, 250, 250))
        processed = preprocess_for_ocr(image, OCRSettings())
        self.assertEqual(processed.mode, "L")
        self.assertEqual([processed.getpixel((x, 0)) for x in range(4)], [0, 0, 255, 255])

    def test_contrast_shift_moves_values_across_threshold(self):
        image = Image.new("L", (1, 1), color=115)
        # 115 - 20 = 95, below a threshold of 100.
        processed = preprocess_for_ocr(image, OCRSettings(binarize_threshold=100))
        self.assertEqual(processed.getpixel((0, 0)), 0)

    def test_tesseract_config(self):
        self.assertEqual(
            OCRSettings(page_segmentation_mode=6).tesseract_config(),
            "--psm 6 -c preserve_interword_spaces=1",
        )


class OCRFallbackTests(unittest.TestCase):
    def test_scanned_pdf_goes_through_ocr(self):
        document = RawDocument(content=make_blank_pdf(pages=2))
        seen = []

        def fake_ocr(image, options):
            seen.append((image.mode, options.languages))
            return OCR_PAGE_TEXT

        with patch("cvforge.parsing.ocr._recognize", side_effect=fake_ocr):
            extracted = asyncio.run(extract_document_text(document, min_chars=50))

        self.assertTrue(extracted.ocr_derived)
        self.assertEqual(len(extracted.pages), 2)
        self.assertIn("Développeur Python", extracted.text)
        self.assertEqual(seen, [("L", "fra+eng"), ("L", "fra+eng")])

    def test_native_text_skips_ocr(self):
        document = RawDocument(content=make_text_pdf(RESUME_TEXT))
        with patch("cvforge.parsing.ocr._recognize") as recognize:
            extracted = asyncio.run(extract_document_text(document, min_chars=50))
        recognize.assert_not_called()
        self.assertFalse(extracted.ocr_derived)

    def test_ocr_with_too_little_text_fails(self):
        document = RawDocument(content=make_blank_pdf())
        with patch("cvforge.parsing.ocr._recognize", return_value="  ~ "):
            with self.assertRaises(OCRFailure) as ctx:
                asyncio.run(ocr_document(document, min_chars=50))
        self.assertEqual(ctx.exception.code, "ocr_insufficient_text")

    def test_missing_tesseract_binary(self):
        document = RawDocument(content=make_blank_pdf())
        with patch(
            "cvforge.parsing.ocr._recognize", side_effect=pytesseract.TesseractNotFoundError()
        ):
            with self.assertRaises(OCRFailure) as ctx:
                asyncio.run(ocr_document(document, min_chars=50))
        self.assertEqual(ctx.exception.code, "ocr_unavailable")

    def test_page_callback_sees_each_page(self):
        document = RawDocument(content=make_blank_pdf(pages=3))
        calls = []

        async def on_page(index, total):
            calls.append((index, total))

        with patch("cvforge.parsing.ocr._recognize", return_value=OCR_PAGE_TEXT):
            asyncio.run(ocr_document(document, min_chars=10, on_page=on_page))
        self.assertEqual(calls, [(1, 3), (2, 3), (3, 3)])


if __name__ == "__main__":
    unittest.main()
