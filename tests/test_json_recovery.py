import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cvforge.services.json_recovery import extract_json_object, iter_balanced_objects  # noqa: E402


class JsonRecoveryTests(unittest.TestCase):
    def test_object_wrapped_in_prose_and_fences(self):
        reply = 'Sure! Here it is:\n```json\n{"isMatch": true, "confidence": 0.8}\n```\nAnything else?'
        self.assertEqual(extract_json_object(reply), {"isMatch": True, "confidence": 0.8})

    def test_braces_inside_strings_do_not_break_balancing(self):
        reply = 'prefix {"reason": "uses {curly} braces and a \\"quote\\" }", "ok": 1} suffix'
        self.assertEqual(
            extract_json_object(reply),
            {"reason": 'uses {curly} braces and a "quote" }', "ok": 1},
        )

    def test_skips_invalid_candidate_and_takes_next_valid_one(self):
        reply = "Template: {name} then the answer {\"name\": \"Jane\"}"
        self.assertEqual(extract_json_object(reply), {"name": "Jane"})

    def test_nested_objects_are_kept_whole(self):
        reply = 'x {"optimizedCV": {"name": "A", "links": [{"url": "u"}]}, "jobTitle": "T"} y'
        parsed = extract_json_object(reply)
        self.assertEqual(parsed["optimizedCV"]["links"][0]["url"], "u")
        self.assertEqual(parsed["jobTitle"], "T")

    def test_no_object_returns_none(self):
        self.assertIsNone(extract_json_object(""))
        self.assertIsNone(extract_json_object(None))
        self.assertIsNone(extract_json_object("I cannot help with that."))
        self.assertIsNone(extract_json_object('{"unterminated": true'))

    def test_candidates_follow_opening_position(self):
        candidates = list(iter_balanced_objects('{"a": {"b": 1}}'))
        self.assertEqual(candidates[0], '{"a": {"b": 1}}')
        self.assertEqual(candidates[1], '{"b": 1}')


if __name__ == "__main__":
    unittest.main()
