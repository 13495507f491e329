"""
Database Configuration and Connection Management

Handles the async PostgreSQL connection that backs every read the advice
engine performs (fishery reports, diary reports, tuned params, venue
profiles and pre-computed basic advice).
"""

from typing import Optional
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import structlog

from config.settings import settings

logger = structlog.get_logger()


def _strip_libpq_params(db_url: str) -> str:
    """Drop sslmode/channel_binding query params (asyncpg uses connect_args instead)."""
    parsed = urlparse(db_url)
    params = parse_qs(parsed.query)
    params.pop("sslmode", None)
    params.pop("channel_binding", None)
    clean_query = urlencode({k: v[0] for k, v in params.items()})
    return urlunparse(parsed._replace(query=clean_query))


class DatabaseManager:
    """Manages the async engine and session factory"""

    def __init__(self):
        self.engine: Optional[AsyncEngine] = None
        self.async_session_maker: Optional[async_sessionmaker] = None

    async def initialize(self):
        """Initialize the database connection pool"""
        db_url = settings.async_database_url
        if not db_url:
            logger.info("database_not_configured")
            return

        try:
            connect_args = {}
            if "sslmode=require" in db_url:
                connect_args["ssl"] = "require"

            self.engine = create_async_engine(
                _strip_libpq_params(db_url),
                echo=False,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=True,
                pool_recycle=300,
                pool_timeout=30,
                connect_args=connect_args,
            )

            self.async_session_maker = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            logger.info("database_pool_initialized")
        except Exception as e:
            logger.error("database_init_failed", error=str(e))
            if settings.is_production:
                raise
            logger.info("continuing_without_database", environment=settings.environment)

    async def close(self):
        """Close all database connections"""
        if self.engine:
            await self.engine.dispose()
            logger.info("database_engine_disposed")

    async def ping(self) -> bool:
        """Run SELECT 1 against the pool; False when unconfigured"""
        if not self.engine:
            return False
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1

    def get_session_factory(self) -> Optional[async_sessionmaker]:
        """Get the session factory (returns None if not initialized)"""
        return self.async_session_maker


# Global database manager instance
db_manager = DatabaseManager()
