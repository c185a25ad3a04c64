"""Integration tests for SqlApplicationRepository on SQLite (and PostgreSQL when available)."""

import os
from collections.abc import AsyncIterator
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from permitflow.config import Settings
from permitflow.db.engine import (
    build_repository,
    create_async_engine_from_settings,
    create_session_factory,
    is_in_memory_database,
    prepare_storage,
    to_async_url,
)
from permitflow.db.models import Base, PermitApplication
from permitflow.db.sql_repositories import SqlApplicationRepository
from permitflow.engine.service import PermitService
from permitflow.models.common import AnalysisStatus, ApplicationStatus, DocumentCategory
from tests.helpers import ScriptedAnalysisProvider, file_meta, major_issue, make_application


@pytest_asyncio.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Fresh in-memory SQLite database with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sql_repository(
    session_factory: async_sessionmaker[AsyncSession],
) -> SqlApplicationRepository:
    """SQL repository over the test database."""
    return SqlApplicationRepository(session_factory)


@pytest.mark.asyncio
async def test_round_trip_preserves_aggregate(sql_repository: SqlApplicationRepository) -> None:
    """What goes in comes back out."""
    app = make_application([DocumentCategory.application_form, DocumentCategory.site_plan])
    app.notes.append("first contact")

    await sql_repository.add(app)
    loaded = await sql_repository.get(app.id)

    assert loaded == app


@pytest.mark.asyncio
async def test_get_unknown_returns_none(sql_repository: SqlApplicationRepository) -> None:
    """Unknown ids are None, not errors."""
    assert await sql_repository.get("PERMIT-NOPE") is None


@pytest.mark.asyncio
async def test_list_orders_by_creation(sql_repository: SqlApplicationRepository) -> None:
    """Rows come back in insertion order."""
    for app_id in ("PERMIT-Z", "PERMIT-A"):
        app = make_application([DocumentCategory.application_form])
        app.id = app_id
        await sql_repository.add(app)

    assert [a.id for a in await sql_repository.list()] == ["PERMIT-Z", "PERMIT-A"]


@pytest.mark.asyncio
async def test_update_rewrites_snapshot_and_status_column(
    sql_repository: SqlApplicationRepository,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """update replaces the JSON document and the denormalized status."""
    app = make_application([DocumentCategory.application_form])
    await sql_repository.add(app)

    app.status = ApplicationStatus.documents_pending
    app.assigned_to = "inspector-7"
    await sql_repository.update(app)

    loaded = await sql_repository.get(app.id)
    assert loaded is not None
    assert loaded.assigned_to == "inspector-7"
    async with session_factory() as session:
        result = await session.execute(select(PermitApplication))
        row = result.scalar_one()
        assert row.status == "documents_pending"


@pytest.mark.asyncio
async def test_update_unknown_raises(sql_repository: SqlApplicationRepository) -> None:
    """Updating a row that was never added is an error."""
    with pytest.raises(KeyError):
        await sql_repository.update(make_application([DocumentCategory.application_form]))


@pytest.mark.asyncio
async def test_ping(sql_repository: SqlApplicationRepository) -> None:
    """ping succeeds against a live database."""
    await sql_repository.ping()


@pytest.mark.asyncio
async def test_service_runs_on_sql_storage(
    sql_repository: SqlApplicationRepository, applicant_fields: dict[str, Any]
) -> None:
    """The full document flow works against SQL persistence."""
    provider = ScriptedAnalysisProvider()
    provider.script("plans.pdf", major_issue())
    service = PermitService(sql_repository, provider)
    app = await service.create_application(applicant_fields)

    for category in app.required_documents:
        name = "plans.pdf" if category == DocumentCategory.electrical_plans else "ok.pdf"
        await service.submit_document(app.id, category, file_meta(name))
    await service.wait_for_analyses()

    stored = await service.get_application(app.id)
    assert stored.status == ApplicationStatus.needs_correction
    flagged = [d for d in stored.documents if d.analysis_status == AnalysisStatus.needs_correction]
    assert [d.category for d in flagged] == [DocumentCategory.electrical_plans]


@pytest.mark.asyncio
async def test_prepare_storage_creates_schema_for_in_memory_sqlite() -> None:
    """A throwaway SQLite URL gets its tables created on startup."""
    settings = Settings(database_url="sqlite://")
    repo = build_repository(settings)

    assert isinstance(repo, SqlApplicationRepository)
    await prepare_storage(repo, settings)
    await repo.ping()
    assert await repo.list() == []


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("sqlite://", "sqlite+aiosqlite://"),
        ("sqlite:///./permits.db", "sqlite+aiosqlite:///./permits.db"),
        ("postgresql://u:p@db/permits", "postgresql+asyncpg://u:p@db/permits"),
        ("postgresql+asyncpg://u:p@db/permits", "postgresql+asyncpg://u:p@db/permits"),
    ],
)
def test_to_async_url(url: str, expected: str) -> None:
    """Plain URLs are switched to the async drivers; async URLs pass through."""
    assert to_async_url(url) == expected


def test_is_in_memory_database() -> None:
    """Only SQLite without a file is considered throwaway."""
    assert is_in_memory_database("sqlite://")
    assert is_in_memory_database("sqlite+aiosqlite:///:memory:")
    assert not is_in_memory_database("sqlite:///./permits.db")
    assert not is_in_memory_database("postgresql://u:p@db/permits")
    assert not is_in_memory_database(None)


def test_create_engine_requires_url() -> None:
    """An engine cannot be built without DATABASE_URL."""
    with pytest.raises(ValueError, match="DATABASE_URL"):
        create_async_engine_from_settings(Settings(database_url=None))


@pytest.mark.postgres
@pytest.mark.asyncio
async def test_postgres_schema_has_jsonb_document() -> None:
    """On PostgreSQL the aggregate column is JSONB."""
    database_url = os.environ.get("DATABASE_URL", "")
    if not database_url.startswith("postgresql"):
        pytest.skip("requires DATABASE_URL pointing at PostgreSQL")

    engine = create_async_engine_from_settings(Settings(database_url=database_url))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        async with engine.connect() as conn:
            columns = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_columns("permit_application")
            )
        by_name = {c["name"]: c for c in columns}
        assert type(by_name["data"]["type"]).__name__ == "JSONB"

        repo = SqlApplicationRepository(create_session_factory(engine))
        app = make_application([DocumentCategory.application_form])
        app.id = "PERMIT-PGTEST"
        await repo.add(app)
        assert await repo.get(app.id) == app
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()
