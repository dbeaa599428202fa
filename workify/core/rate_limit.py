from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from workify.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _passthrough(func):
    return func


def rate_limit():
    if settings.rate_limit_enabled:
        return limiter.limit(settings.rate_limit)
    return _passthrough


def ai_rate_limit():
    """Stricter limit for routes that trigger LLM or embedding calls."""
    if settings.rate_limit_enabled:
        return limiter.limit(settings.ai_rate_limit)
    return _passthrough
