from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_HEX_RE = re.compile(r"^(?:[0-9a-f]{2})+$")


class EncryptedPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    iv: str
    salt: str
    cipher: str

    @field_validator("iv", "salt", "cipher", mode="before")
    @classmethod
    def _hex(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        if not _HEX_RE.match(text):
            raise ValueError("must be a non-empty even-length hex string")
        return text


@dataclass(frozen=True)
class PlaintextCredential:
    value: str


@dataclass(frozen=True)
class EncryptedCredential:
    payload: EncryptedPayload


StoredCredential = PlaintextCredential | EncryptedCredential


class StoredCredentialConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base_url: str = Field(alias="baseURL")
    model: str
    api_key: EncryptedPayload | str = Field(alias="apiKey")

    def credential(self) -> StoredCredential:
        if isinstance(self.api_key, EncryptedPayload):
            return EncryptedCredential(self.api_key)
        return PlaintextCredential(self.api_key)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class UserInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    email: str | None = None
    phone: str | None = None

    def has_any(self) -> bool:
        return any((self.first_name, self.last_name, self.email, self.phone))

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
