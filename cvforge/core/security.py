from __future__ import annotations

import base64
import hashlib
import json
import logging
import secrets
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import ValidationError

from cvforge.core.errors import CryptoFailure
from cvforge.core.store import KeyValueStore
from cvforge.schemas.credentials import EncryptedPayload

logger = logging.getLogger(__name__)

SECRET_STORAGE_KEY = "cvforge_encryption_secret"
SECRET_BYTES = 32
SALT_BYTES = 16
IV_BYTES = 12
KEY_BYTES = 32
PBKDF2_ITERATIONS = 100_000
PBKDF2_HASH = "sha256"


def ensure_encryption_secret(device_store: KeyValueStore) -> str:
    """Return the device-local secret, generating and persisting it on first use."""
    try:
        existing = device_store.get(SECRET_STORAGE_KEY)
    except Exception as exc:
        raise CryptoFailure(
            "Local secret store is unavailable.", code="secret_store_unavailable"
        ) from exc

    if isinstance(existing, str) and existing:
        return existing

    secret = base64.b64encode(secrets.token_bytes(SECRET_BYTES)).decode("ascii")
    try:
        device_store.put(SECRET_STORAGE_KEY, secret)
    except Exception as exc:
        raise CryptoFailure(
            "Local secret store is unavailable.", code="secret_store_unavailable"
        ) from exc
    logger.info("encryption_secret_generated")
    return secret


def clear_encryption_secret(device_store: KeyValueStore) -> None:
    # Everything encrypted under the old secret becomes undecryptable.
    device_store.delete(SECRET_STORAGE_KEY)
    logger.info("encryption_secret_cleared")


def derive_key(secret: str, salt: bytes) -> bytes:
    if not secret:
        raise CryptoFailure("Encryption secret is empty.", code="secret_missing")
    return hashlib.pbkdf2_hmac(
        PBKDF2_HASH,
        secret.encode("utf-8"),
        salt,
        PBKDF2_ITERATIONS,
        dklen=KEY_BYTES,
    )


def encrypt_json(data: Any, secret: str) -> EncryptedPayload:
    salt = secrets.token_bytes(SALT_BYTES)
    iv = secrets.token_bytes(IV_BYTES)
    key = derive_key(secret, salt)

    try:
        plaintext = json.dumps(data, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise CryptoFailure("Value is not JSON-serializable.", code="encrypt_failed") from exc

    cipher = AESGCM(key).encrypt(iv, plaintext, None)
    return EncryptedPayload(iv=iv.hex(), salt=salt.hex(), cipher=cipher.hex())


def decrypt_json(payload: EncryptedPayload | dict[str, Any], secret: str) -> Any:
    try:
        envelope = (
            payload
            if isinstance(payload, EncryptedPayload)
            else EncryptedPayload.model_validate(payload)
        )
        iv = bytes.fromhex(envelope.iv)
        salt = bytes.fromhex(envelope.salt)
        cipher = bytes.fromhex(envelope.cipher)
    except (ValidationError, ValueError) as exc:
        raise CryptoFailure("Encrypted payload is malformed.", code="payload_malformed") from exc

    if len(iv) != IV_BYTES or len(salt) != SALT_BYTES:
        raise CryptoFailure("Encrypted payload is malformed.", code="payload_malformed")

    key = derive_key(secret, salt)
    try:
        plaintext = AESGCM(key).decrypt(iv, cipher, None)
    except InvalidTag as exc:
        raise CryptoFailure(
            "Stored credential can no longer be decrypted. Please re-enter your API key.",
            code="decrypt_failed",
        ) from exc

    try:
        return json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise CryptoFailure("Decrypted payload is not valid JSON.", code="decrypt_failed") from exc
