from __future__ import annotations

import logging

from pydantic import ValidationError

from cvforge.ai.types import LLMProvider
from cvforge.core.errors import StructuredParseFailure
from cvforge.schemas.credentials import UserInfo
from cvforge.schemas.resume import StructuredResume

from .default_prompts import IDENTITY_HINTS_SECTION, RESUME_EXTRACTION_PROMPT
from .json_recovery import extract_json_object

logger = logging.getLogger(__name__)


def _identity_lines(hints: UserInfo) -> list[str]:
    lines: list[str] = []
    if hints.first_name and hints.last_name:
        lines.append(f"Name: {hints.first_name} {hints.last_name}")
    elif hints.first_name:
        lines.append(f"First name: {hints.first_name}")
    elif hints.last_name:
        lines.append(f"Last name: {hints.last_name}")
    if hints.email:
        lines.append(f"Email: {hints.email}")
    if hints.phone:
        lines.append(f"Phone: {hints.phone}")
    return lines


def build_extraction_prompt(text: str, hints: UserInfo | None = None) -> str:
    section = ""
    if hints is not None and hints.has_any():
        section = IDENTITY_HINTS_SECTION.format(hints="\n".join(_identity_lines(hints)))
    return RESUME_EXTRACTION_PROMPT.format(text=text, identity_section=section)


async def extract_structured_resume(
    text: str, provider: LLMProvider, hints: UserInfo | None = None
) -> StructuredResume:
    reply = await provider.send_chat_prompt(build_extraction_prompt(text, hints))

    data = extract_json_object(reply)
    if data is None:
        logger.warning("resume_extraction_unparsable response_chars=%s", len(reply))
        raise StructuredParseFailure(
            "The AI response could not be parsed as a structured CV."
        )

    try:
        resume = StructuredResume.from_model_output(data)
    except ValidationError as exc:
        raise StructuredParseFailure(
            "The AI response did not match the expected CV structure."
        ) from exc

    logger.info(
        "resume_extraction_done experience=%s education=%s skills=%s",
        len(resume.experience),
        len(resume.education),
        len(resume.skills),
    )
    return resume
