import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cvforge.schemas.analysis import AnalysisStatus, ClassificationResult  # noqa: E402
from cvforge.schemas.job import NOT_SPECIFIED, JobDetails  # noqa: E402
from cvforge.schemas.optimization import OptimizationResult  # noqa: E402
from cvforge.schemas.resume import StructuredResume  # noqa: E402


class StructuredResumeTests(unittest.TestCase):
    def test_empty_output_yields_all_empty_resume(self):
        resume = StructuredResume.from_model_output({})
        self.assertTrue(resume.is_empty())
        payload = resume.to_payload()
        for key in ("name", "email", "phone", "about"):
            self.assertEqual(payload[key], "")
        for key in ("skills", "experience", "education", "languages", "hobbies", "certifications", "links"):
            self.assertEqual(payload[key], [])

    def test_wrong_types_are_coerced_instead_of_rejected(self):
        resume = StructuredResume.from_model_output(
            {
                "name": None,
                "phone": 33612345678,
                "skills": "Python",
                "hobbies": ["Chess", None, 42, {"x": 1}],
                "experience": [{"title": "Dev", "description": ["Built", "Shipped"]}, "garbage"],
                "languages": {"name": "French"},
                "links": [{"name": "GitHub", "url": "https://github.com/x", "icon": ""}],
                "unexpected": "ignored",
            }
        )
        self.assertEqual(resume.name, "")
        self.assertEqual(resume.phone, "33612345678")
        self.assertEqual(resume.skills, ["Python"])
        self.assertEqual(resume.hobbies, ["Chess", "42"])
        self.assertEqual(len(resume.experience), 1)
        self.assertEqual(resume.experience[0].description, ["Built", "Shipped"])
        self.assertEqual(resume.experience[0].company, "")
        self.assertEqual(resume.languages, [])
        self.assertIsNone(resume.links[0].icon)
        self.assertFalse(resume.is_empty())


class JobDetailsTests(unittest.TestCase):
    def test_unspecified_record(self):
        details = JobDetails.unspecified()
        self.assertEqual(details.job_title, NOT_SPECIFIED)
        self.assertEqual(details.company, NOT_SPECIFIED)
        self.assertEqual(details.required_skills, [])

    def test_payload_uses_camel_case_keys(self):
        details = JobDetails.model_validate(
            {"jobTitle": "Engineer", "requiredSkills": ["Go"], "contractType": " CDI "}
        )
        payload = details.to_payload()
        self.assertEqual(payload["jobTitle"], "Engineer")
        self.assertEqual(payload["requiredSkills"], ["Go"])
        self.assertEqual(payload["contractType"], "CDI")


class ScoreClampingTests(unittest.TestCase):
    def test_confidence_is_clamped_to_unit_interval(self):
        self.assertEqual(ClassificationResult(is_match=True, confidence=1.7).confidence, 1.0)
        self.assertEqual(ClassificationResult(is_match=True, confidence=-3).confidence, 0.0)
        self.assertEqual(ClassificationResult(is_match=True, confidence="nope").confidence, 0.0)

    def test_threshold_is_inclusive(self):
        self.assertTrue(ClassificationResult(is_match=True, confidence=0.6).passes(0.6))
        self.assertFalse(ClassificationResult(is_match=True, confidence=0.59).passes(0.6))
        self.assertFalse(ClassificationResult(is_match=False, confidence=0.99).passes(0.6))

    def test_match_score_is_clamped(self):
        result = OptimizationResult.model_validate(
            {"optimizedCV": {"name": "A"}, "jobTitle": "T", "matchScore": "140%"}
        )
        self.assertEqual(result.match_score, 100)

    def test_status_payload_hides_unset_fields(self):
        payload = AnalysisStatus(status="extracting", progress=10, last_updated=5).to_payload()
        self.assertEqual(payload, {"status": "extracting", "progress": 10, "lastUpdated": 5})


if __name__ == "__main__":
    unittest.main()
