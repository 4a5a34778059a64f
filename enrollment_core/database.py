"""
enrollment_core/database.py
Async database configuration for the enrollment engine
"""
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine

from enrollment_core.config.settings import settings
# Import Base from orm.base to avoid circular imports
from enrollment_core.orm.base import Base
import enrollment_core.orm  # ensures all models are registered

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is not set")


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine tuned for the target dialect.

    SQLite gets a busy timeout so concurrent writers from a bulk enrollment
    wait for each other instead of failing with "database is locked".
    """
    if "sqlite" in url.lower():
        engine = create_async_engine(
            url,
            echo=echo,
            future=True,
            pool_pre_ping=True,
            connect_args={
                "timeout": 30.0,   # SQLite busy timeout in seconds
            }
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # PostgreSQL/MySQL: Use standard pool with larger size
    return create_async_engine(
        url,
        echo=echo,
        future=True,
        pool_pre_ping=True,
        pool_size=20,           # Base pool size
        max_overflow=30,        # Additional connections under load
        pool_timeout=30,        # Wait up to 30s for connection
        pool_recycle=3600,      # Recycle connections after 1 hour
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = build_engine(DATABASE_URL, echo=settings.DB_ECHO)

AsyncSessionLocal = build_session_factory(engine)


async def get_db():
    """Dependency for getting async database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker:
    """
    Dependency for operations that fan out over several sessions.

    A single AsyncSession cannot serve concurrent statements, so bulk
    enrollment opens one session per item from this factory.
    """
    return AsyncSessionLocal


async def init_db(bind: AsyncEngine = None):
    """Create all tables that don't exist yet."""
    bind = bind or engine
    logger.info("Initializing database...")
    try:
        logger.info(f"Database dialect: {bind.url.get_backend_name()}")
        async with bind.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✓ Database initialization complete")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise


async def close_db():
    """Close database connection"""
    await engine.dispose()
    logger.info("Database connection closed")
