# app/infrastructure/database.py

from typing import Any, Optional
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from config.settings import settings
import logging

logger = logging.getLogger(__name__)


# Base class for the server's SQLAlchemy models
Base = declarative_base()


class DatabaseConnection:
    """
    Async engine + session factory for one database URL

    Used for the server's PostgreSQL database and for the device-local
    SQLite lobby cache.
    """

    def __init__(self, database_url: str, label: str, **engine_options: Any):
        self.database_url = database_url
        self.label = label
        self.engine_options = engine_options
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    async def connect(self, metadata: Optional[Any] = None):
        """
        Open the engine and check it answers

        Args:
            metadata: If given, its tables are created when missing
        """
        if self.engine is not None:
            return  # Already connected

        try:
            self.engine = create_async_engine(self.database_url, **self.engine_options)
            self.session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                if metadata is not None:
                    await conn.run_sync(metadata.create_all)

            logger.info(f"✅ Connected to {self.label}")
        except Exception as e:
            logger.error(f"❌ Failed to connect to {self.label}: {e}")
            self.engine = None
            self.session_factory = None
            raise

    async def disconnect(self):
        """Dispose the engine"""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info(f"✅ Disconnected from {self.label}")

    def get_session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get the session factory for creating database sessions"""
        if not self.session_factory:
            raise RuntimeError(f"{self.label} is not connected. Call connect() first.")
        return self.session_factory


# Server database
postgres_connection = DatabaseConnection(
    settings.DATABASE_URL,
    label=f"PostgreSQL at {settings.POSTGRES_HOST}:{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}",
    echo=settings.DEBUG,  # Log SQL queries in debug mode
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)


async def get_db_session() -> AsyncSession:
    """
    Dependency for FastAPI routes to get a database session.

    Commits when the route returns, rolls back when it raises.
    """
    session_factory = postgres_connection.get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
