"""
Base Repository

Provides the read-only base class and common functionality for all
repositories. The advice engine never writes: every repository here is a
thin raw-SQL reader returning plain row mappings.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


class RepositoryError(Exception):
    """Base exception for repository errors"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class DataSourceUnavailableError(RepositoryError):
    """Raised when the backing database is not configured or unreachable"""
    pass


class ReadRepository:
    """
    Base class for read-only repositories.

    Each query opens its own short-lived session from the factory so that
    independent lookups can be awaited concurrently; a single AsyncSession
    does not permit concurrent operations.
    """

    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]]):
        """
        Args:
            session_factory: An ``async_sessionmaker`` (or any callable
                returning an async-context-managed session). None means the
                database is not configured.
        """
        self._session_factory = session_factory

    async def _fetch_all(
        self, query: str, params: Optional[Dict[str, Any]] = None
    ) -> List[Mapping[str, Any]]:
        """Execute a SELECT and return every row as a mapping."""
        if self._session_factory is None:
            raise DataSourceUnavailableError("Database is not configured")

        try:
            async with self._session_factory() as session:
                result = await session.execute(text(query), params or {})
                return [dict(row) for row in result.mappings().all()]
        except RepositoryError:
            raise
        except Exception as e:
            raise RepositoryError(
                f"{self.__class__.__name__} query failed: {e}", e
            ) from e

    async def _fetch_one(
        self, query: str, params: Optional[Dict[str, Any]] = None
    ) -> Optional[Mapping[str, Any]]:
        """Execute a SELECT expected to match zero-or-one row."""
        rows = await self._fetch_all(query, params)
        return rows[0] if rows else None
