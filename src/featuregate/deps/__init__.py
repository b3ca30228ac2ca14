"""Dependency injection for FastAPI.

This package provides all FastAPI dependency functions organized by responsibility:
- providers: Singleton providers (settings, flag cache)
- injection: Repository and service dependency injection
- features: Feature gating for route handlers
"""

from .features import request_context, require_feature
from .injection import (
    get_admin_service,
    get_db,
    get_feature_flag_repo,
    get_feature_service,
)
from .providers import get_anonymous_admit, get_flag_cache, get_settings

__all__ = [
    # Providers
    "get_settings",
    "get_flag_cache",
    "get_anonymous_admit",
    # Injection
    "get_db",
    "get_feature_flag_repo",
    "get_feature_service",
    "get_admin_service",
    # Features
    "request_context",
    "require_feature",
]
