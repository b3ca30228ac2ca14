from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI

from . import db as db_mod
from .config import Settings
from .infrastructure.cache.flag_cache import FlagCache
from .infrastructure.repositories.feature_repository import SessionFeatureFlagSource
from .logging_config import get_logger
from .setup_db import create_all

logger = get_logger(__name__)


@dataclass
class WireResult:
    app: Any
    engine: Any
    sessionmaker: Any
    flag_cache: Any
    teardown: Any


def build_flag_cache(session_factory: Any, settings: Settings) -> FlagCache:
    return FlagCache(
        SessionFeatureFlagSource(session_factory),
        ttl_seconds=settings.flag_cache_ttl_seconds,
        refresh_timeout_seconds=settings.flag_refresh_timeout_seconds,
    )


async def wire_app(app: FastAPI, settings: Settings | None = None) -> WireResult:
    """Connect the flag store and hand the app a warm flag cache.

    Creates the engine, ensures the flag tables exist, attaches a FlagCache to
    ``app.state`` and loads the first snapshot; starts the background
    refresher when ``flag_background_refresh_seconds`` is set.

    Must run at startup, never at import: DATABASE_URL is read here.
    """
    settings = settings or Settings()

    db_engine = db_mod.create_engine(settings)
    session_factory = db_mod.create_sessionmaker(db_engine)
    await create_all(engine=db_engine)

    flag_cache = build_flag_cache(session_factory, settings)
    app.state.flag_cache = flag_cache
    app.state.flag_anonymous_rollout_admit = settings.flag_anonymous_rollout_admit

    # warm the snapshot; a failure here is served as an empty snapshot
    warm = await flag_cache.refresh()
    logger.info("flag_cache_warmed", count=len(warm.flags), stale=warm.stale)

    if settings.flag_background_refresh_seconds > 0:
        flag_cache.start_background_refresh(settings.flag_background_refresh_seconds)

    async def _teardown():
        try:
            await flag_cache.aclose()
        except Exception as e:
            logger.debug("flag_cache_close_failed", extra={"error": str(e)})
        try:
            await db_mod.dispose_engine(db_engine)
        except Exception as e:
            logger.debug("engine_dispose_failed", extra={"error": str(e)})

    return WireResult(
        app=app,
        engine=db_engine,
        sessionmaker=session_factory,
        flag_cache=flag_cache,
        teardown=_teardown,
    )
