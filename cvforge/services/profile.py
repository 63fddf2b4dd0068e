from __future__ import annotations

import logging

from pydantic import ValidationError

from cvforge.core.security import clear_encryption_secret
from cvforge.core.store import (
    SETTINGS_AI_CONFIG,
    SETTINGS_CV_ANALYSIS_STATUS,
    SETTINGS_CV_PARSED_DATA,
    SETTINGS_RETRY_COUNT,
    SETTINGS_USER_INFO,
    KeyValueStore,
)
from cvforge.schemas.credentials import UserInfo

logger = logging.getLogger(__name__)

_RESET_KEYS = (
    SETTINGS_AI_CONFIG,
    SETTINGS_RETRY_COUNT,
    SETTINGS_USER_INFO,
    SETTINGS_CV_PARSED_DATA,
    SETTINGS_CV_ANALYSIS_STATUS,
)


def load_user_info(store: KeyValueStore) -> UserInfo | None:
    raw = store.get(SETTINGS_USER_INFO)
    if not isinstance(raw, dict):
        return None
    try:
        info = UserInfo.model_validate(raw)
    except ValidationError:
        logger.warning("user_info_unreadable")
        return None
    return info if info.has_any() else None


def save_user_info(store: KeyValueStore, info: UserInfo) -> None:
    store.put(SETTINGS_USER_INFO, info.to_payload())


def reset_local_data(store: KeyValueStore, device_store: KeyValueStore) -> None:
    """Forget onboarding data and the vault secret.

    Optimization records and prompt overrides are kept.
    """
    for key in _RESET_KEYS:
        store.delete(key)
    clear_encryption_secret(device_store)
    logger.info("local_data_reset keys=%s", len(_RESET_KEYS))
