"""SQL implementation of the application repository."""

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from permitflow.db.models import Base, PermitApplication
from permitflow.models.application import Application


class SqlApplicationRepository:
    """SQL implementation of ApplicationRepository.

    Each call opens its own short-lived async session so the repository can
    be shared by request handlers and background analysis tasks without
    blocking the event loop.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_schema(self) -> None:
        """Create tables directly (throwaway databases only; use Alembic otherwise)."""
        async with self._session_factory() as session:
            connection = await session.connection()
            await connection.run_sync(Base.metadata.create_all)
            await session.commit()

    async def add(self, application: Application) -> None:
        """Persist a newly created application."""
        row = PermitApplication(
            application_id=application.id,
            status=application.status.value,
            permit_type=application.permit_type.value,
            data=application.model_dump(mode="json"),
            created_at=application.created_at,
            updated_at=application.updated_at,
        )

        async with self._session_factory() as session:
            session.add(row)
            await session.commit()

    async def get(self, application_id: str) -> Application | None:
        """Get application by ID."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(PermitApplication).where(
                    PermitApplication.application_id == application_id
                )
            )
            row = result.scalar_one_or_none()

            if row is None:
                return None

            return Application.model_validate(row.data)

    async def list(self) -> list[Application]:
        """List all applications in creation order."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(PermitApplication).order_by(PermitApplication.seq.asc())
            )

            return [Application.model_validate(row.data) for row in result.scalars()]

    async def update(self, application: Application) -> None:
        """Replace a stored application with a new snapshot."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(PermitApplication).where(
                    PermitApplication.application_id == application.id
                )
            )
            row = result.scalar_one_or_none()

            if row is None:
                raise KeyError(application.id)

            row.status = application.status.value
            row.data = application.model_dump(mode="json")
            row.updated_at = application.updated_at

            await session.commit()

    async def ping(self) -> None:
        """Run a trivial query against the database."""
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))
