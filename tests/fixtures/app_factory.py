from types import SimpleNamespace
from typing import Any, Tuple

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from featuregate import db as db_mod
from featuregate.config import Settings
from featuregate.composition import build_flag_cache
from featuregate.setup_db import create_all
from featuregate.wiring import create_app


async def create_test_app(
    database_url: str, settings: Settings | None = None
) -> Tuple[Any, Any, Any]:
    """Create an app backed by a fresh engine/sessionmaker and its own flag cache.

    Returns (client, engine, AsyncSessionLocal). ``client.app`` is the FastAPI
    app; tests build an httpx.ASGITransport from it.
    """
    settings = settings or Settings(database_url=database_url)
    app = create_app(settings)

    # NullPool keeps aiosqlite connections from outliving the test's event loop
    engine = create_async_engine(database_url, echo=False, poolclass=NullPool)
    await create_all(engine=engine)

    # register on the db module so deps.get_db hands out sessions on this engine
    db_mod.engine = engine
    AsyncSessionLocal = db_mod.create_sessionmaker(engine)

    app.state.flag_cache = build_flag_cache(AsyncSessionLocal, settings)

    client = SimpleNamespace(app=app)
    return client, engine, AsyncSessionLocal
