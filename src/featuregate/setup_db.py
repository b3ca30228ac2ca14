from sqlalchemy.ext.asyncio import AsyncEngine

from . import db as db_mod
from .infrastructure.db.models import Base
from .logging_config import get_logger

logger = get_logger(__name__)


async def create_all(engine: AsyncEngine | None = None):
    """Create the feature flag tables if they do not exist yet.

    Unlike evaluation, administration cannot work without the flag store, so a
    failure here is logged with a hint and re-raised to abort startup.
    """
    use_engine = engine or getattr(db_mod, "engine", None)
    if use_engine is None:
        raise RuntimeError("No engine available to create tables")
    try:
        async with use_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as exc:
        logger.error(
            "flag_store_schema_failed; could not reach the configured database."
            " Start it or point DATABASE_URL at a reachable one"
            " (eg. sqlite+aiosqlite:///./featuregate.db).",
            error=str(exc),
        )
        raise
    logger.info("flag_store_schema_ready", tables=sorted(Base.metadata.tables))
