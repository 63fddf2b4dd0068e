from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from cvforge.ai.types import LLMProvider
from cvforge.core.config import get_pipeline_value
from cvforge.core.errors import OptimizationParseFailure, PipelineError, ProviderTransportFailure
from cvforge.core.store import (
    SETTINGS_PROMPT_INSTRUCTION_PREFIX,
    SETTINGS_PROMPT_SYSTEM,
    SETTINGS_RETRY_COUNT,
    KeyValueStore,
)
from cvforge.schemas.optimization import Language, MatchMode, OptimizationResult
from cvforge.schemas.resume import StructuredResume

from .default_prompts import DEFAULT_INSTRUCTIONS, DEFAULT_STRUCTURE_PROMPT, DEFAULT_SYSTEM_PROMPT
from .json_recovery import extract_json_object

logger = logging.getLogger(__name__)

LANGUAGE_LABELS: dict[str, str] = {"fr": "FRENCH", "en": "ENGLISH"}
MAX_RETRY_COUNT = 10


@dataclass(frozen=True)
class PromptSettings:
    system_prompt: str
    instruction_prompt: str


def _override(store: KeyValueStore, key: str) -> str | None:
    value = store.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


def default_retry_count() -> int:
    return int(get_pipeline_value("optimization.default_retry_count", 3))


def load_prompt_settings(store: KeyValueStore | None, mode: MatchMode) -> PromptSettings:
    system_prompt = DEFAULT_SYSTEM_PROMPT
    instruction_prompt = DEFAULT_INSTRUCTIONS[mode]
    if store is None:
        return PromptSettings(system_prompt, instruction_prompt)

    try:
        system_prompt = _override(store, SETTINGS_PROMPT_SYSTEM) or system_prompt
        instruction_prompt = (
            _override(store, f"{SETTINGS_PROMPT_INSTRUCTION_PREFIX}{mode}") or instruction_prompt
        )
    except Exception:
        logger.warning("prompt_settings_unreadable mode=%s", mode, exc_info=True)
        return PromptSettings(DEFAULT_SYSTEM_PROMPT, DEFAULT_INSTRUCTIONS[mode])
    return PromptSettings(system_prompt, instruction_prompt)


def load_retry_count(store: KeyValueStore | None) -> int:
    default = default_retry_count()
    if store is None:
        return default
    try:
        raw = store.get(SETTINGS_RETRY_COUNT)
    except Exception:
        logger.warning("retry_count_unreadable", exc_info=True)
        return default
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return max(0, min(MAX_RETRY_COUNT, value))


def build_optimization_prompt(
    resume: StructuredResume | dict[str, Any],
    job_description: str,
    language: Language,
    prompts: PromptSettings,
) -> str:
    payload = resume.to_payload() if isinstance(resume, StructuredResume) else resume
    cv_text = json.dumps(payload, indent=2, ensure_ascii=False)
    # Each named placeholder is substituted once; {lang} everywhere.
    prompt = (
        prompts.system_prompt.replace("{jobDescription}", job_description, 1)
        .replace("{cvText}", cv_text, 1)
        .replace("{instructions}", prompts.instruction_prompt, 1)
        .replace("{structure}", DEFAULT_STRUCTURE_PROMPT, 1)
    )
    return prompt.replace("{lang}", LANGUAGE_LABELS[language])


def parse_optimization_reply(reply: str) -> OptimizationResult:
    data = extract_json_object(reply)
    if data is None:
        raise OptimizationParseFailure("No JSON found in response.")

    optimized = data.get("optimizedCV")
    if not isinstance(optimized, dict) or not optimized:
        raise OptimizationParseFailure("Invalid optimization result: optimizedCV is missing.")
    job_title = data.get("jobTitle")
    if not isinstance(job_title, str) or not job_title.strip():
        raise OptimizationParseFailure("Invalid optimization result: jobTitle is missing.")

    try:
        return OptimizationResult.model_validate(data)
    except ValidationError as exc:
        raise OptimizationParseFailure(
            "Invalid optimization result: unexpected structure."
        ) from exc


async def optimize_cv(
    resume: StructuredResume,
    job_description: str,
    mode: MatchMode,
    language: Language,
    provider: LLMProvider,
    *,
    store: KeyValueStore | None = None,
    retry_count: int | None = None,
) -> OptimizationResult:
    """Rewrite `resume` for `job_description`, making up to retry_count + 1 attempts.

    Attempts run one after another. The last error is raised once all fail.
    """
    prompts = load_prompt_settings(store, mode)
    retries = load_retry_count(store) if retry_count is None else max(0, retry_count)
    prompt = build_optimization_prompt(resume, job_description, language, prompts)

    last_error: PipelineError | None = None
    for attempt in range(retries + 1):
        if attempt > 0:
            logger.info("cv_optimization_retry attempt=%s/%s", attempt, retries)
        try:
            reply = await provider.send_chat_prompt(prompt)
            result = parse_optimization_reply(reply)
        except (OptimizationParseFailure, ProviderTransportFailure) as exc:
            logger.warning(
                "cv_optimization_attempt_failed attempt=%s code=%s", attempt + 1, exc.code
            )
            last_error = exc
            continue

        logger.info(
            "cv_optimization_done mode=%s lang=%s attempts=%s score=%s",
            mode,
            language,
            attempt + 1,
            result.match_score,
        )
        return result

    if last_error is None:
        raise OptimizationParseFailure("Failed to optimize CV after retries.")
    raise last_error
