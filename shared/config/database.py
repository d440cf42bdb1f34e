from typing import Optional

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .settings import DATABASE_URL, DB_ECHO

logger = structlog.get_logger(__name__)

Base = declarative_base()

SCHEMAS = ("product_schema", "order_schema")

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first use."""
    global _engine, _session_factory
    if _engine is None:
        _engine = create_async_engine(DATABASE_URL, echo=DB_ECHO)
        _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


def get_session_factory() -> async_sessionmaker:
    get_engine()
    return _session_factory


async def init_db():
    """Creates the service schemas and tables. Models must be imported first."""
    engine = get_engine()
    async with engine.begin() as conn:
        if engine.dialect.name == "postgresql":
            for schema in SCHEMAS:
                await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database.initialized", tables=sorted(Base.metadata.tables.keys()))


async def dispose_db():
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("database.disposed")
    _engine = None
    _session_factory = None


async def get_db():
    async with get_session_factory()() as session:
        yield session
