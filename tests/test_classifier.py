import asyncio
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cvforge.core.errors import ClassificationRejection, ProviderTransportFailure  # noqa: E402
from cvforge.schemas.analysis import ClassificationResult  # noqa: E402
from cvforge.services.document_classifier import (  # noqa: E402
    JOB_POSTING,
    RESUME,
    classify_document,
    heuristic_classification,
    require_match,
)
from provider_fakes import RESUME_TEXT, ScriptedProvider  # noqa: E402


class ClassifierTests(unittest.TestCase):
    def test_model_verdict_is_used_when_json_is_present(self):
        provider = ScriptedProvider(['Result: {"isMatch": true, "confidence": 0.6, "reason": "A CV."}'])
        result = asyncio.run(classify_document(RESUME_TEXT, provider, RESUME))
        self.assertTrue(result.is_match)
        self.assertEqual(result.confidence, 0.6)
        self.assertFalse(result.heuristic)
        self.assertIs(require_match(result, RESUME, 0.6), result)

    def test_confidence_just_below_threshold_is_rejected(self):
        provider = ScriptedProvider(['{"isMatch": true, "confidence": 0.59, "reason": "Unclear layout."}'])
        result = asyncio.run(classify_document(RESUME_TEXT, provider, RESUME))
        with self.assertRaises(ClassificationRejection) as ctx:
            require_match(result, RESUME, 0.6)
        self.assertIn("Unclear layout.", str(ctx.exception))
        self.assertEqual(ctx.exception.confidence, 0.59)
        self.assertEqual(ctx.exception.source, "document")

    def test_legacy_verdict_keys_are_understood(self):
        provider = ScriptedProvider(['{"isCV": false, "confidence": 0.95, "reason": "Invoice."}'])
        result = asyncio.run(classify_document("Invoice #42 total due", provider, RESUME))
        self.assertFalse(result.is_match)
        self.assertEqual(result.reason, "Invoice.")

    def test_unparsable_reply_falls_back_to_keywords(self):
        provider = ScriptedProvider(["I think this is probably a CV."])
        result = asyncio.run(classify_document(RESUME_TEXT, provider, RESUME))
        self.assertTrue(result.heuristic)
        self.assertTrue(result.is_match)
        self.assertEqual(result.confidence, RESUME.hit_confidence)
        require_match(result, RESUME, 0.6)

    def test_keyword_miss_is_rejected_at_default_threshold(self):
        result = heuristic_classification("Quarterly revenue grew 12 percent.", RESUME)
        self.assertFalse(result.is_match)
        self.assertEqual(result.confidence, RESUME.miss_confidence)
        with self.assertRaises(ClassificationRejection):
            require_match(result, RESUME)

    def test_only_a_sample_of_the_text_is_sent(self):
        provider = ScriptedProvider(['{"isMatch": true, "confidence": 0.9, "reason": "ok"}'])
        long_text = "skills " * 2000
        asyncio.run(classify_document(long_text, provider, RESUME))
        self.assertNotIn(long_text, provider.prompts[0])
        self.assertIn(long_text[:2000], provider.prompts[0])

    def test_transport_errors_propagate(self):
        provider = ScriptedProvider([ProviderTransportFailure("down", status_code=503)])
        with self.assertRaises(ProviderTransportFailure):
            asyncio.run(classify_document(RESUME_TEXT, provider, RESUME))


class JobPostingClassifierTests(unittest.TestCase):
    def test_raw_reply_becomes_summary_when_json_missing(self):
        provider = ScriptedProvider(["Backend Engineer at Globex.\nMissions: build APIs."])
        result = asyncio.run(
            classify_document("We are hiring for this position. Requirements: Python.", provider, JOB_POSTING)
        )
        self.assertTrue(result.heuristic)
        self.assertTrue(result.is_match)
        self.assertEqual(result.confidence, 0.7)
        self.assertEqual(result.reason, "Backend Engineer at Globex.\nMissions: build APIs.")

    def test_threshold_applies_to_job_postings(self):
        low = ClassificationResult(is_match=True, confidence=0.3, reason="Login page")
        with self.assertRaises(ClassificationRejection) as ctx:
            require_match(low, JOB_POSTING)
        self.assertIn("job posting", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
