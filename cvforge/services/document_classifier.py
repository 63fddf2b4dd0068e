from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from cvforge.ai.types import LLMProvider
from cvforge.core.config import get_pipeline_value
from cvforge.core.errors import ClassificationRejection
from cvforge.schemas.analysis import ClassificationResult

from .default_prompts import JOB_POSTING_CLASSIFIER_PROMPT, RESUME_CLASSIFIER_PROMPT
from .json_recovery import extract_json_object

logger = logging.getLogger(__name__)

_MATCH_FIELDS = ("isMatch", "isCV", "isJobPosting")
_REASON_FIELDS = ("reason", "summary")


@dataclass(frozen=True)
class ClassificationTarget:
    name: str
    prompt_template: str
    keywords: tuple[str, ...]
    hit_confidence: float
    miss_confidence: float
    hit_reason: str
    miss_reason: str
    threshold_key: str
    rejection_message: str
    sample_chars_key: str | None = None
    # Job postings keep the raw model reply as their summary when JSON is missing.
    raw_reply_as_reason: bool = False

    def threshold(self) -> float:
        return float(get_pipeline_value(self.threshold_key, 0.6))


RESUME = ClassificationTarget(
    name="resume",
    prompt_template=RESUME_CLASSIFIER_PROMPT,
    keywords=(
        "experience",
        "expérience",
        "compétences",
        "skills",
        "formation",
        "education",
        "cv",
        "curriculum",
        "resume",
    ),
    hit_confidence=0.6,
    miss_confidence=0.4,
    hit_reason="The document contains keywords typical of a CV.",
    miss_reason="The document does not seem to contain elements typical of a CV.",
    threshold_key="classification.resume_threshold",
    rejection_message="The document does not look like a CV",
    sample_chars_key="classification.sample_chars",
)

JOB_POSTING = ClassificationTarget(
    name="job_posting",
    prompt_template=JOB_POSTING_CLASSIFIER_PROMPT,
    keywords=(
        "poste",
        "candidat",
        "compétences",
        "expérience",
        "mission",
        "responsabilités",
        "job",
        "position",
        "skills",
        "requirements",
    ),
    hit_confidence=0.7,
    miss_confidence=0.3,
    hit_reason="The text contains keywords typical of a job posting.",
    miss_reason="The text does not seem to be a job posting.",
    threshold_key="classification.job_posting_threshold",
    rejection_message="The content does not look like a job posting",
    raw_reply_as_reason=True,
)


def _sample(text: str, target: ClassificationTarget) -> str:
    if target.sample_chars_key is None:
        return text
    return text[: int(get_pipeline_value(target.sample_chars_key, 2000))]


def heuristic_classification(
    sample: str, target: ClassificationTarget, raw_reply: str = ""
) -> ClassificationResult:
    lowered = sample.lower()
    hit = any(keyword in lowered for keyword in target.keywords)
    if target.raw_reply_as_reason and raw_reply.strip():
        reason = raw_reply.strip()
    else:
        reason = target.hit_reason if hit else target.miss_reason
    return ClassificationResult(
        is_match=hit,
        confidence=target.hit_confidence if hit else target.miss_confidence,
        reason=reason,
        heuristic=True,
    )


def _first_present(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _from_model_output(data: dict[str, Any]) -> ClassificationResult | None:
    verdict = _first_present(data, _MATCH_FIELDS)
    if not isinstance(verdict, bool):
        return None
    reason = _first_present(data, _REASON_FIELDS)
    try:
        return ClassificationResult(
            is_match=verdict,
            confidence=data.get("confidence"),
            reason=reason if isinstance(reason, str) else "",
        )
    except ValidationError:
        return None


async def classify_document(
    text: str, provider: LLMProvider, target: ClassificationTarget
) -> ClassificationResult:
    """Ask the model whether `text` is what `target` describes.

    Unparsable replies degrade to a keyword heuristic. Transport errors propagate.
    """
    sample = _sample(text, target)
    reply = await provider.send_chat_prompt(target.prompt_template.format(text=sample))

    data = extract_json_object(reply)
    result = _from_model_output(data) if data is not None else None
    if result is None:
        logger.warning(
            "classification_reply_unparsable kind=%s response_chars=%s", target.name, len(reply)
        )
        result = heuristic_classification(sample, target, raw_reply=reply)

    logger.info(
        "classification_done kind=%s match=%s confidence=%.2f heuristic=%s",
        target.name,
        result.is_match,
        result.confidence,
        result.heuristic,
    )
    return result


def require_match(
    result: ClassificationResult, target: ClassificationTarget, threshold: float | None = None
) -> ClassificationResult:
    limit = target.threshold() if threshold is None else threshold
    if result.passes(limit):
        return result
    detail = result.reason or "no reason given"
    raise ClassificationRejection(
        f"{target.rejection_message}: {detail}",
        confidence=result.confidence,
        reason=result.reason,
    )
