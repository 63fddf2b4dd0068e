from __future__ import annotations

import logging
from typing import Literal

from pydantic import ValidationError

from cvforge.ai.config import ProviderConnection
from cvforge.core.errors import CryptoFailure, MissingConfiguration
from cvforge.core.security import decrypt_json, encrypt_json, ensure_encryption_secret
from cvforge.core.store import SETTINGS_AI_CONFIG, SETTINGS_RETRY_COUNT, KeyValueStore
from cvforge.schemas.credentials import (
    EncryptedCredential,
    PlaintextCredential,
    StoredCredentialConfig,
)

logger = logging.getLogger(__name__)

CredentialStatus = Literal["ok", "missing", "reentry_required"]


def load_stored_config(store: KeyValueStore) -> StoredCredentialConfig | None:
    raw = store.get(SETTINGS_AI_CONFIG)
    if raw is None:
        return None
    try:
        return StoredCredentialConfig.model_validate(raw)
    except ValidationError as exc:
        raise CryptoFailure(
            "Stored AI configuration is unreadable. Please re-enter your API key.",
            code="config_malformed",
        ) from exc


def load_provider_connection(
    store: KeyValueStore, device_store: KeyValueStore
) -> ProviderConnection:
    """Resolve the stored config into an in-memory connection holding the plain key."""
    config = load_stored_config(store)
    if config is None:
        raise MissingConfiguration("No AI provider is configured yet.")

    credential = config.credential()
    if isinstance(credential, PlaintextCredential):
        # Legacy rows stay readable until the next save encrypts them.
        api_key = credential.value
    elif isinstance(credential, EncryptedCredential):
        secret = ensure_encryption_secret(device_store)
        decrypted = decrypt_json(credential.payload, secret)
        if not isinstance(decrypted, str):
            raise CryptoFailure(
                "Stored credential has an unexpected shape. Please re-enter your API key.",
                code="decrypt_failed",
            )
        api_key = decrypted
    else:  # pragma: no cover
        raise CryptoFailure("Unknown credential shape.", code="config_malformed")

    if not api_key.strip():
        raise MissingConfiguration("The stored API key is empty.")
    return ProviderConnection.build(config.base_url, config.model, api_key)


def save_provider_connection(
    store: KeyValueStore,
    device_store: KeyValueStore,
    *,
    base_url: str,
    model: str,
    api_key: str,
    retry_count: int | None = None,
) -> ProviderConnection:
    connection = ProviderConnection.build(base_url, model, api_key)
    secret = ensure_encryption_secret(device_store)
    config = StoredCredentialConfig(
        base_url=connection.base_url,
        model=connection.model,
        api_key=encrypt_json(connection.api_key, secret),
    )
    store.put(SETTINGS_AI_CONFIG, config.to_payload())
    if retry_count is not None:
        store.put(SETTINGS_RETRY_COUNT, int(retry_count))
    logger.info("ai_config_saved kind=%s model=%s", connection.kind.value, connection.model)
    return connection


def credential_status(store: KeyValueStore, device_store: KeyValueStore) -> CredentialStatus:
    try:
        load_provider_connection(store, device_store)
    except MissingConfiguration:
        return "missing"
    except CryptoFailure:
        return "reentry_required"
    return "ok"
