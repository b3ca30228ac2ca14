"""Dependency injection functions for FastAPI.

This module provides FastAPI Depends() functions for repositories, services
and database sessions.
"""

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..infrastructure.cache.flag_cache import FlagCache
from ..ports.repositories import FeatureFlagRepository
from ..services.feature_admin_service import FeatureFlagAdminService
from ..services.feature_service import FeatureFlagService
from .providers import get_anonymous_admit, get_flag_cache


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Import the db module at call time so any runtime rebinds of the session
    factory (startup wiring, tests) are respected.
    """
    from .. import db as db_mod

    async for db_session in db_mod.get_db():
        yield db_session


async def get_feature_flag_repo(
    db_session: AsyncSession = Depends(get_db),
) -> FeatureFlagRepository:
    """Get feature flag repository instance from the repository factory."""
    from ..infrastructure.repositories import get_repositories

    repos = get_repositories(db_session)
    result: FeatureFlagRepository = repos["feature_flags"]  # type: ignore[assignment]
    return result


def get_feature_service(
    cache: FlagCache = Depends(get_flag_cache),
    anonymous_admit: bool = Depends(get_anonymous_admit),
) -> FeatureFlagService:
    return FeatureFlagService(cache, anonymous_admit=anonymous_admit)


def get_admin_service(
    repo: FeatureFlagRepository = Depends(get_feature_flag_repo),
    cache: FlagCache = Depends(get_flag_cache),
) -> FeatureFlagAdminService:
    return FeatureFlagAdminService(repo, cache=cache)
