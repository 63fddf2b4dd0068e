from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from cvforge.core.config import settings

PROVIDER_SCOPE = "provider"

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def rate_limit(scope: str | None = PROVIDER_SCOPE):
    """Per-client limit for routes that call the configured model provider.

    Routes sharing a ``scope`` draw from the same counter, so spreading calls
    across endpoints does not multiply the allowance.
    """
    if not settings.rate_limit_enabled:

        def decorator(func):
            return func

        return decorator
    if scope is None:
        return limiter.limit(settings.rate_limit)
    return limiter.shared_limit(settings.rate_limit, scope=scope)
