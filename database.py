from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from typing import AsyncGenerator

from config.settings import settings, IS_PRODUCTION

# Validate production database configuration
if IS_PRODUCTION:
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL must be set in production. SQLite is not allowed in production.")
    if "sqlite" in settings.database_url.lower():
        raise RuntimeError("SQLite is forbidden in production. Point DATABASE_URL at the Supabase Postgres instance.")

# Default to SQLite with aiosqlite, but allow override via DATABASE_URL env var
DATABASE_URL = settings.database_url or "sqlite+aiosqlite:///./slimpath.db"

# Supabase hands out plain postgres:// URLs; the async engine needs asyncpg
async_url = DATABASE_URL.replace("postgres://", "postgresql://", 1).replace(
    "postgresql://", "postgresql+asyncpg://", 1
)


def enable_sqlite_savepoints(async_engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy emit BEGIN itself on SQLite.

    The sqlite3 driver defers BEGIN until the first write, which breaks
    SAVEPOINT and rollback of earlier statements in the same transaction.
    """
    @event.listens_for(async_engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Create async engine
engine = create_async_engine(
    async_url,
    echo=False,
    future=True,
)

if engine.dialect.name == "sqlite":
    enable_sqlite_savepoints(engine)

# Create declarative base for models
Base = declarative_base()

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db():
    """
    Initialize the database by creating all tables.
    This should be called on application startup.
    """
    async with engine.begin() as conn:
        # Import models here to ensure they're registered with Base
        import database_models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields a database session.

    Services commit their own unit of work; the commit here only flushes
    whatever a handler left pending.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
