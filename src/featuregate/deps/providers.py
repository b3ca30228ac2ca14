"""Singleton providers for application-wide services and clients.

The flag cache is owned by the application (``app.state.flag_cache``) and is
resolved per request rather than kept in a module global.
"""

from typing import Any

from fastapi import HTTPException, Request
from starlette import status

from ..config import Settings
from ..infrastructure.cache.flag_cache import FlagCache

# Lazy singleton to avoid import-time side-effects
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def get_flag_cache(request: Request) -> FlagCache:
    """Get the flag cache wired onto the FastAPI app at startup."""
    cache: Any = getattr(request.app.state, "flag_cache", None)
    if cache is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="feature flag cache not initialized",
        )
    return cache


def get_anonymous_admit(request: Request) -> bool:
    """Anonymous rollout policy: app.state override first, then settings."""
    override = getattr(request.app.state, "flag_anonymous_rollout_admit", None)
    if override is not None:
        return bool(override)
    return get_settings().flag_anonymous_rollout_admit
