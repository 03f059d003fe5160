"""
PostgreSQL Database Connection Manager
The engine is created on first use so importing the models never connects
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool
from sqlalchemy.orm import declarative_base
import logging

from .config import postgres_settings

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_async_session_maker: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    """Get or create the database engine"""
    global _engine

    if _engine is None:
        use_null_pool = postgres_settings.use_null_pool
        try:
            if use_null_pool:
                _engine = create_async_engine(
                    postgres_settings.database_url,
                    poolclass=NullPool,
                    pool_pre_ping=postgres_settings.pool_pre_ping,
                    echo=False,
                )
            else:
                _engine = create_async_engine(
                    postgres_settings.database_url,
                    poolclass=AsyncAdaptedQueuePool,
                    pool_size=postgres_settings.pool_size,
                    max_overflow=postgres_settings.max_overflow,
                    pool_pre_ping=postgres_settings.pool_pre_ping,
                    pool_recycle=postgres_settings.pool_recycle,
                    echo=False,
                )
            logger.info("Database engine created successfully")
        except Exception as e:
            logger.error(f"Failed to create database engine: {e}")
            raise

    return _engine


def get_session_maker() -> async_sessionmaker:
    """Get or create the session maker"""
    global _async_session_maker

    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _async_session_maker


def reset_engine() -> None:
    """Forget the engine so the next connection reloads configuration"""
    global _engine, _async_session_maker
    _engine = None
    _async_session_maker = None
    logger.info("Database engine reset - will reload config on next connection")


async def init_postgres_db() -> None:
    """
    Initialize database by creating all tables defined in models.
    This should be called before the first numbering request is stored.
    """
    try:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ PostgreSQL tables initialized successfully")
    except Exception as e:
        logger.error(f"❌ Failed to initialize PostgreSQL tables: {e}")
        raise


async def close_postgres_db() -> None:
    """Close the database connection pool."""
    if _engine is not None:
        await _engine.dispose()
        reset_engine()
        logger.info("✅ PostgreSQL connection pool closed")
