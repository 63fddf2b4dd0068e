from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup
from pydantic import ValidationError

from cvforge.ai.types import LLMProvider
from cvforge.core.config import get_pipeline_value, settings
from cvforge.core.errors import DocumentReadError
from cvforge.schemas.analysis import ClassificationResult
from cvforge.schemas.job import JobDetails

from .default_prompts import JOB_DETAILS_PROMPT
from .document_classifier import JOB_POSTING, classify_document, require_match
from .json_recovery import extract_json_object
from .url_security import host_is_private_or_local, normalize_job_url

logger = logging.getLogger(__name__)

MIN_FETCHED_TEXT_CHARS = 50
ELLIPSIS = "..."

_STRIP_TAGS = ("script", "style", "noscript", "svg", "iframe", "nav", "header", "footer", "aside")
_FETCH_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "fr-FR,fr;q=0.9,en-US;q=0.8,en;q=0.7",
}


@dataclass(frozen=True)
class JobImport:
    description: str
    classification: ClassificationResult
    source: str
    url: str | None = None


def _max_text_chars() -> int:
    return int(get_pipeline_value("job_details.max_text_chars", 50000))


def truncate_label(value: str, max_chars: int | None = None, keep: int | None = None) -> str:
    limit = int(get_pipeline_value("job_details.max_field_chars", 35)) if max_chars is None else max_chars
    head = int(get_pipeline_value("job_details.truncate_to", 32)) if keep is None else keep
    if len(value) > limit:
        return value[:head] + ELLIPSIS
    return value


def clean_job_html(html: str, max_chars: int | None = None) -> str:
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(_STRIP_TAGS):
        tag.decompose()
    for item in soup.find_all("li"):
        item.string = "• " + item.get_text(" ", strip=True)
    for br in soup.find_all("br"):
        br.replace_with("\n")

    text = soup.get_text("\n")
    text = re.sub(r"[ \t\r\f\v]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text).strip()
    return text[: _max_text_chars() if max_chars is None else max_chars]


async def fetch_job_page(url: str, *, http_client: httpx.AsyncClient | None = None) -> tuple[str, str]:
    """Fetch a job posting page and return (final_url, cleaned_text)."""
    try:
        normalized_url, hostname = normalize_job_url(url)
    except ValueError as exc:
        raise DocumentReadError(str(exc), code="job_url_invalid") from exc
    if await asyncio.to_thread(host_is_private_or_local, hostname):
        raise DocumentReadError(
            "Private or local URLs are not allowed for job import.", code="job_url_rejected"
        )

    try:
        if http_client is not None:
            response = await http_client.get(normalized_url, headers=_FETCH_HEADERS, follow_redirects=True)
        else:
            async with httpx.AsyncClient(
                timeout=settings.job_fetch_timeout_s, follow_redirects=True, headers=_FETCH_HEADERS
            ) as client:
                response = await client.get(normalized_url)
    except httpx.HTTPError as exc:
        logger.warning("job_fetch_failed host=%s error=%s", hostname, type(exc).__name__)
        raise DocumentReadError(
            "The job page could not be fetched. Paste the description instead.",
            code="job_fetch_failed",
        ) from exc

    if response.status_code >= 400:
        logger.warning("job_fetch_http_error host=%s status=%s", hostname, response.status_code)
        raise DocumentReadError(
            f"The job page returned HTTP {response.status_code}. Paste the description instead.",
            code="job_fetch_failed",
        )

    text = clean_job_html(response.text)
    logger.info("job_fetch_ok host=%s chars=%s", hostname, len(text))
    if len(text) < MIN_FETCHED_TEXT_CHARS:
        raise DocumentReadError(
            "The job page did not contain enough readable text. Paste the description instead.",
            code="job_text_too_short",
        )
    return str(response.url), text


async def import_job_posting(
    provider: LLMProvider,
    *,
    text: str | None = None,
    url: str | None = None,
    threshold: float | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> JobImport:
    """Gate pasted or fetched text through the job-posting classifier."""
    source = "paste"
    final_url: str | None = None
    body = (text or "").strip()
    if url and not body:
        final_url, body = await fetch_job_page(url, http_client=http_client)
        source = "url"
    if not body:
        raise DocumentReadError("A job description or job URL is required.", code="job_text_missing")

    result = await classify_document(body[: _max_text_chars()], provider, JOB_POSTING)
    require_match(result, JOB_POSTING, threshold)
    description = result.reason.strip() or body
    return JobImport(description=description, classification=result, source=source, url=final_url)


async def analyze_job_details(text: str, provider: LLMProvider) -> JobDetails:
    """Extract JobDetails; unparsable replies degrade to a "Not specified" record."""
    reply = await provider.send_chat_prompt(JOB_DETAILS_PROMPT.format(text=text[: _max_text_chars()]))

    details: JobDetails | None = None
    data = extract_json_object(reply)
    if data is not None:
        try:
            details = JobDetails.model_validate(data)
        except ValidationError:
            details = None
    if details is None:
        logger.warning("job_details_unparsable response_chars=%s", len(reply))
        details = JobDetails.unspecified()

    return details.model_copy(
        update={
            "job_title": truncate_label(details.job_title),
            "company": truncate_label(details.company),
        }
    )
