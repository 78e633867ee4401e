"""Database connection and session management."""
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ratapay.config import Settings
from ratapay.database.models import Base


def _engine_options(settings: Settings) -> Dict[str, Any]:
    """Pool options for the configured backend."""
    options: Dict[str, Any] = {
        "echo": settings.database_echo,
        "pool_pre_ping": True,  # Verify connections before using
    }
    if not settings.database_url.startswith("sqlite"):
        options["pool_size"] = 20
        options["max_overflow"] = 50
        options["pool_recycle"] = 3600  # Recycle connections after 1 hour
    return options


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Created unstarted; ``init()`` opens the pool and creates tables, and
    ``close()`` disposes of the engine.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        """
        Get or create the database engine.

        Returns:
            AsyncEngine: SQLAlchemy async engine instance
        """
        if self._engine is None:
            self._engine = create_async_engine(
                self.settings.database_url, **_engine_options(self.settings)
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """
        Get or create the session factory.

        Returns:
            async_sessionmaker: SQLAlchemy async session factory
        """
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    async def init(self) -> None:
        """
        Initialize database tables.

        Creates all tables defined in models if they don't exist.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable."""
        async with self.session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()

    async def close(self) -> None:
        """Close database connections and dispose of the engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
