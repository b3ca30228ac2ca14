"""Unit tests for startup wiring."""

import pytest

from featuregate import composition
from featuregate import db as db_mod
from featuregate.config import Settings
from featuregate.infrastructure.cache.flag_cache import FlagCache
from featuregate.wiring import create_app


@pytest.mark.asyncio
async def test_wire_app_builds_and_warms_cache(database_url):
    settings = Settings(database_url=database_url, flag_cache_ttl_seconds=30)
    app = create_app(settings)

    wired = await composition.wire_app(app, settings)
    try:
        assert isinstance(app.state.flag_cache, FlagCache)
        assert wired.flag_cache is app.state.flag_cache
        status = app.state.flag_cache.status()
        assert status["has_snapshot"] is True
        assert status["ttl_seconds"] == 30
    finally:
        await wired.teardown()
    assert db_mod.engine is None
    assert db_mod.AsyncDbSessionFactory is None


@pytest.mark.asyncio
async def test_wire_app_starts_background_refresh(database_url):
    settings = Settings(database_url=database_url, flag_background_refresh_seconds=60)
    app = create_app(settings)

    wired = await composition.wire_app(app, settings)
    try:
        assert wired.flag_cache._background_task is not None
    finally:
        await wired.teardown()
    assert wired.flag_cache._background_task is None
