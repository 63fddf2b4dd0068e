import asyncio
from typing import Sequence

import fitz  # PyMuPDF

from cvforge.ai.types import ChatMessage, ModelInfo
from cvforge.core.errors import ProviderTransportFailure


class ScriptedProvider:
    """Replays canned replies in order; an Exception entry is raised instead."""

    def __init__(self, replies=None, models=None, delay_s: float = 0.0):
        self.replies = list(replies or [])
        self.models = list(models or [ModelInfo(id="gpt-test", created=1, owned_by="tests")])
        self.prompts: list[str] = []
        self.delay_s = delay_s
        self.closed = False

    async def list_models(self):
        return list(self.models)

    async def send_chat_prompt(self, prompt: str | Sequence[ChatMessage], *, max_tokens=None) -> str:
        if isinstance(prompt, str):
            self.prompts.append(prompt)
        else:
            self.prompts.append("\n".join(m.content for m in prompt))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if not self.replies:
            raise ProviderTransportFailure("No scripted reply left.", status_code=500)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def aclose(self):
        self.closed = True


def make_text_pdf(text: str, pages: int = 1) -> bytes:
    doc = fitz.open()
    for _ in range(pages):
        page = doc.new_page()
        page.insert_text((72, 72), text, fontsize=10)
    content = doc.tobytes()
    doc.close()
    return content


def make_blank_pdf(pages: int = 1) -> bytes:
    doc = fitz.open()
    for _ in range(pages):
        doc.new_page(width=200, height=200)
    content = doc.tobytes()
    doc.close()
    return content


RESUME_TEXT = (
    "Jane Doe\n"
    "jane.doe@example.com\n"
    "Experience\n"
    "Senior Data Engineer at Acme Corp 2019-2024\n"
    "Built streaming pipelines in Python and SQL.\n"
    "Education\n"
    "MSc Computer Science, Example University 2017\n"
    "Skills: Python, SQL, Airflow, Docker"
)

RESUME_REPLY = (
    "Here is the extracted CV:\n"
    "```json\n"
    '{"name": "Jane Doe", "email": "jane.doe@example.com", "phone": "",'
    ' "about": "Data engineer", "skills": ["Python", "SQL"],'
    ' "experience": [{"title": "Senior Data Engineer", "company": "Acme Corp",'
    ' "period": "2019-2024", "description": "Built streaming pipelines."}],'
    ' "education": [{"degree": "MSc Computer Science", "institution": "Example University",'
    ' "period": "2017", "description": ""}],'
    ' "languages": [], "hobbies": [], "certifications": [], "links": []}\n'
    "```"
)

CV_ACCEPTED_REPLY = '{"isMatch": true, "confidence": 0.92, "reason": "Has experience and education."}'
CV_REJECTED_REPLY = '{"isMatch": false, "confidence": 0.9, "reason": "This is an invoice."}'

JOB_DESCRIPTION = (
    "Backend Engineer at Globex. Missions: design REST APIs, run PostgreSQL in production, "
    "mentor juniors. Required skills: Python, FastAPI, PostgreSQL. Contract: permanent, Paris."
)

OPTIMIZATION_REPLY = (
    '{"optimizedCV": {"name": "Jane Doe", "email": "jane.doe@example.com",'
    ' "about": "Backend-leaning data engineer", "skills": ["Python", "FastAPI", "PostgreSQL"],'
    ' "experience": [], "education": [], "languages": [], "hobbies": [],'
    ' "certifications": [], "links": []},'
    ' "jobTitle": "Backend Engineer", "company": "Globex", "matchScore": 82,'
    ' "changes": ["Reordered skills"], "suggestions": ["Mention API design work"]}'
)

JOB_DETAILS_REPLY = (
    '{"jobTitle": "Backend Engineer", "company": "Globex", "location": "Paris",'
    ' "keywords": ["APIs"], "tools": ["PostgreSQL"], "requiredSkills": ["Python", "FastAPI"],'
    ' "preferredSkills": [], "profile": "Mid-level backend engineer", "missions": ["Design APIs"],'
    ' "contractType": "Permanent", "salary": null, "benefits": []}'
)
