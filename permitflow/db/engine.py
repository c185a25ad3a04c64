"""Database engine, session factory and repository selection."""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from permitflow.config import Settings
from permitflow.db.inmemory import InMemoryApplicationRepository
from permitflow.db.repositories import ApplicationRepository
from permitflow.db.sql_repositories import SqlApplicationRepository


def to_async_url(database_url: str) -> str:
    """Select the async driver for a plain database URL."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


def is_in_memory_database(database_url: str | None) -> bool:
    """True for SQLite in-memory URLs, whose data dies with the process."""
    if not database_url:
        return False
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def create_async_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create async SQLAlchemy engine from settings.

    Raises:
        ValueError: If DATABASE_URL is unset or empty.
    """
    database_url = settings.database_url

    if not database_url:
        raise ValueError(
            "DATABASE_URL must be set to a valid connection string. "
            "Please configure the database_url setting."
        )

    async_url = to_async_url(database_url)

    if is_in_memory_database(async_url):
        # One shared connection, otherwise every session sees an empty database
        return create_async_engine(async_url, poolclass=StaticPool, echo=False)

    return create_async_engine(async_url, pool_pre_ping=True, echo=False)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create sessionmaker for creating async database sessions.

    Args:
        engine: Async SQLAlchemy engine

    Returns:
        Sessionmaker bound to the engine
    """
    return async_sessionmaker(bind=engine, expire_on_commit=False)


def build_repository(settings: Settings) -> ApplicationRepository:
    """Select the application repository for the configured storage.

    Without DATABASE_URL the engine runs on an in-process store.
    """
    if not settings.database_url:
        return InMemoryApplicationRepository()

    engine = create_async_engine_from_settings(settings)
    return SqlApplicationRepository(create_session_factory(engine))


async def prepare_storage(repository: ApplicationRepository, settings: Settings) -> None:
    """Create the schema for throwaway databases; real ones are migrated by Alembic."""
    if isinstance(repository, SqlApplicationRepository) and is_in_memory_database(
        settings.database_url
    ):
        await repository.create_schema()
