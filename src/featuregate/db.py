from typing import Any, Dict, Optional, cast

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from .config import Settings
from .logging_config import get_logger

logger = get_logger(__name__)

# Flag store engine and session factory, registered at startup by composition.wire_app
engine: Optional[Any] = None
AsyncDbSessionFactory: Any = None


def database_url_for(settings: Settings) -> str:
    if settings.database_url:
        return settings.database_url
    return f"postgresql+asyncpg://{settings.db_user}:{settings.db_password}@{settings.db_host}:{settings.db_port}/{settings.db_name}"


def _engine_options(settings: Settings, database_url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": False, "future": True}
    if database_url.startswith("postgresql"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=settings.db_pool_pre_ping,
            # asyncpg statement timeout; keeps a hung flag read inside the refresh budget
            connect_args={"command_timeout": 30},
        )
    return options


def create_engine(settings: Settings) -> Any:
    """Create the flag store engine and register it on this module.

    Pool sizing applies to PostgreSQL only; sqlite (dev and tests) keeps the
    aiosqlite defaults.
    """
    global engine
    database_url = database_url_for(settings)
    engine = create_async_engine(database_url, **_engine_options(settings, database_url))
    logger.info("flag_store_engine_created", dialect=engine.dialect.name)
    return engine


def create_sessionmaker(bind_engine: Any) -> Any:
    """Create and register the AsyncSession factory bound to ``bind_engine``."""
    global AsyncDbSessionFactory
    AsyncDbSessionFactory = cast(
        Any, sessionmaker(bind=bind_engine, expire_on_commit=False, class_=AsyncSession)
    )  # type: ignore[call-overload]
    return AsyncDbSessionFactory


async def dispose_engine(bind_engine: Any = None) -> None:
    """Dispose ``bind_engine`` (default: the registered one) and unregister it."""
    global engine, AsyncDbSessionFactory
    target = bind_engine if bind_engine is not None else engine
    if target is None:
        return
    await target.dispose()
    if target is engine:
        engine = None
        AsyncDbSessionFactory = None


async def get_db():
    """Yield a database session for administration handlers."""
    # read the factory at call time so a rebind during startup or tests is seen
    if AsyncDbSessionFactory is None:
        raise RuntimeError(
            "Database session factory not initialized. Call create_engine()/create_sessionmaker() in your application startup."
        )
    async with AsyncDbSessionFactory() as db_session:
        yield db_session
