import asyncio
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cvforge.core.errors import OptimizationParseFailure, ProviderTransportFailure  # noqa: E402
from cvforge.core.store import (  # noqa: E402
    SETTINGS_PROMPT_INSTRUCTION_PREFIX,
    SETTINGS_PROMPT_SYSTEM,
    SETTINGS_RETRY_COUNT,
    LocalStore,
)
from cvforge.schemas.resume import StructuredResume  # noqa: E402
from cvforge.services.cv_optimizer import (  # noqa: E402
    PromptSettings,
    build_optimization_prompt,
    load_prompt_settings,
    load_retry_count,
    optimize_cv,
    parse_optimization_reply,
)
from cvforge.services.default_prompts import DEFAULT_INSTRUCTIONS, DEFAULT_SYSTEM_PROMPT  # noqa: E402
from provider_fakes import JOB_DESCRIPTION, OPTIMIZATION_REPLY, ScriptedProvider  # noqa: E402

RESUME = StructuredResume(name="Jane Doe", skills=["Python"])


class FailingStore:
    def get(self, key):
        raise OSError("store offline")

    def put(self, key, value):
        raise OSError("store offline")

    def delete(self, key):
        raise OSError("store offline")


class RetryTests(unittest.TestCase):
    def test_three_retries_mean_four_calls_then_last_error(self):
        provider = ScriptedProvider(["not json"] * 4)
        with self.assertRaises(OptimizationParseFailure):
            asyncio.run(optimize_cv(RESUME, JOB_DESCRIPTION, "normal", "en", provider, retry_count=3))
        self.assertEqual(len(provider.prompts), 4)

    def test_zero_retries_means_one_call(self):
        provider = ScriptedProvider(["not json", OPTIMIZATION_REPLY])
        with self.assertRaises(OptimizationParseFailure):
            asyncio.run(optimize_cv(RESUME, JOB_DESCRIPTION, "normal", "en", provider, retry_count=0))
        self.assertEqual(len(provider.prompts), 1)

    def test_missing_job_title_then_valid_reply(self):
        provider = ScriptedProvider(['{"optimizedCV": {"name": "X"}}', OPTIMIZATION_REPLY])
        result = asyncio.run(
            optimize_cv(RESUME, JOB_DESCRIPTION, "aggressive", "fr", provider, retry_count=1)
        )
        self.assertEqual(len(provider.prompts), 2)
        self.assertEqual(result.job_title, "Backend Engineer")
        self.assertEqual(result.match_score, 82)
        self.assertEqual(result.optimized_cv.skills, ["Python", "FastAPI", "PostgreSQL"])

    def test_two_prose_replies_then_valid_reply_with_two_retries(self):
        provider = ScriptedProvider(
            [
                "Sure! Here is a tailored version of your CV for this role.",
                "I have improved the summary and reordered your skills.",
                OPTIMIZATION_REPLY,
            ]
        )
        result = asyncio.run(
            optimize_cv(RESUME, JOB_DESCRIPTION, "aggressive", "en", provider, retry_count=2)
        )
        self.assertEqual(len(provider.prompts), 3)
        self.assertEqual(result.job_title, "Backend Engineer")
        self.assertEqual(result.match_score, 82)
        expected_prompt = build_optimization_prompt(
            RESUME, JOB_DESCRIPTION, "en", load_prompt_settings(None, "aggressive")
        )
        self.assertEqual(provider.prompts, [expected_prompt] * 3)

    def test_transport_failures_are_retried_and_last_one_raised(self):
        provider = ScriptedProvider(
            [
                ProviderTransportFailure("rate limited", status_code=429),
                "garbage",
                ProviderTransportFailure("bad gateway", status_code=502),
            ]
        )
        with self.assertRaises(ProviderTransportFailure) as ctx:
            asyncio.run(optimize_cv(RESUME, JOB_DESCRIPTION, "light", "en", provider, retry_count=2))
        self.assertEqual(ctx.exception.status_code, 502)

    def test_retry_count_comes_from_store(self):
        store = LocalStore(":memory:")
        store.put(SETTINGS_RETRY_COUNT, 1)
        provider = ScriptedProvider(["x", "y", "z"])
        with self.assertRaises(OptimizationParseFailure):
            asyncio.run(optimize_cv(RESUME, JOB_DESCRIPTION, "normal", "en", provider, store=store))
        self.assertEqual(len(provider.prompts), 2)
        store.close()


class ReplyValidationTests(unittest.TestCase):
    def test_empty_optimized_cv_is_rejected(self):
        with self.assertRaises(OptimizationParseFailure):
            parse_optimization_reply('{"optimizedCV": {}, "jobTitle": "Dev"}')

    def test_blank_job_title_is_rejected(self):
        with self.assertRaises(OptimizationParseFailure):
            parse_optimization_reply('{"optimizedCV": {"name": "A"}, "jobTitle": "  "}')

    def test_no_json(self):
        with self.assertRaises(OptimizationParseFailure) as ctx:
            parse_optimization_reply("Here you go!")
        self.assertIn("No JSON", str(ctx.exception))


class PromptSettingsTests(unittest.TestCase):
    def setUp(self):
        self.store = LocalStore(":memory:")

    def tearDown(self):
        self.store.close()

    def test_defaults_without_overrides(self):
        prompts = load_prompt_settings(self.store, "light")
        self.assertEqual(prompts.system_prompt, DEFAULT_SYSTEM_PROMPT)
        self.assertEqual(prompts.instruction_prompt, DEFAULT_INSTRUCTIONS["light"])

    def test_overrides_win_and_blank_overrides_are_ignored(self):
        self.store.put(SETTINGS_PROMPT_SYSTEM, "Custom {cvText}")
        self.store.put(f"{SETTINGS_PROMPT_INSTRUCTION_PREFIX}normal", "   ")
        prompts = load_prompt_settings(self.store, "normal")
        self.assertEqual(prompts.system_prompt, "Custom {cvText}")
        self.assertEqual(prompts.instruction_prompt, DEFAULT_INSTRUCTIONS["normal"])

    def test_unreadable_store_falls_back_to_defaults(self):
        prompts = load_prompt_settings(FailingStore(), "aggressive")
        self.assertEqual(prompts.instruction_prompt, DEFAULT_INSTRUCTIONS["aggressive"])
        self.assertEqual(load_retry_count(FailingStore()), 3)

    def test_retry_count_is_clamped(self):
        self.store.put(SETTINGS_RETRY_COUNT, 99)
        self.assertEqual(load_retry_count(self.store), 10)
        self.store.put(SETTINGS_RETRY_COUNT, -4)
        self.assertEqual(load_retry_count(self.store), 0)


class PromptAssemblyTests(unittest.TestCase):
    def test_placeholders_are_substituted(self):
        prompts = PromptSettings(
            system_prompt="JD={jobDescription}|CV={cvText}|I={instructions}|L={lang}|{lang}",
            instruction_prompt="be bold",
        )
        prompt = build_optimization_prompt(RESUME, "Need Python", "fr", prompts)
        self.assertIn("JD=Need Python|", prompt)
        self.assertIn('"name": "Jane Doe"', prompt)
        self.assertIn("I=be bold|", prompt)
        self.assertTrue(prompt.endswith("L=FRENCH|FRENCH"))

    def test_named_placeholders_are_replaced_once(self):
        prompts = PromptSettings(system_prompt="{jobDescription} {jobDescription}", instruction_prompt="")
        prompt = build_optimization_prompt(RESUME, "JD", "en", prompts)
        self.assertEqual(prompt, "JD {jobDescription}")

    def test_default_prompt_leaves_no_placeholders(self):
        prompts = load_prompt_settings(None, "normal")
        prompt = build_optimization_prompt(RESUME, JOB_DESCRIPTION, "en", prompts)
        for placeholder in ("{jobDescription}", "{cvText}", "{instructions}", "{structure}", "{lang}"):
            self.assertNotIn(placeholder, prompt)
        self.assertIn("ENGLISH", prompt)


if __name__ == "__main__":
    unittest.main()
