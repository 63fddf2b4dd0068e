from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

PDF_MEDIA_TYPE = "application/pdf"


class RawDocument(BaseModel):
    content: bytes
    media_type: str = PDF_MEDIA_TYPE
    filename: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @field_validator("media_type")
    @classmethod
    def _validate_media_type(cls, value: str) -> str:
        normalized = (value or PDF_MEDIA_TYPE).split(";")[0].strip().lower()
        if normalized not in {PDF_MEDIA_TYPE, "application/x-pdf", "application/octet-stream"}:
            raise ValueError("only PDF documents are supported")
        return normalized


class DocumentMetadata(BaseModel):
    title: str | None = None
    author: str | None = None
    subject: str | None = None


class ExtractedText(BaseModel):
    text: str
    pages: list[str] = Field(default_factory=list)
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    ocr_derived: bool = False

    @property
    def char_count(self) -> int:
        return len(self.text.strip())
