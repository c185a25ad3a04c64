"""In-memory implementation of the application repository."""

from permitflow.models.application import Application


class InMemoryApplicationRepository:
    """In-memory implementation of ApplicationRepository."""

    def __init__(self) -> None:
        # dict keeps insertion (creation) order
        self._applications: dict[str, Application] = {}

    async def add(self, application: Application) -> None:
        """Persist a newly created application."""
        if application.id in self._applications:
            raise ValueError(f"Application {application.id} already exists")
        self._applications[application.id] = application.model_copy(deep=True)

    async def get(self, application_id: str) -> Application | None:
        """Get application by ID."""
        record = self._applications.get(application_id)

        if record is None:
            return None

        return record.model_copy(deep=True)

    async def list(self) -> list[Application]:
        """List all applications in creation order."""
        return [record.model_copy(deep=True) for record in self._applications.values()]

    async def update(self, application: Application) -> None:
        """Replace a stored application with a new snapshot."""
        if application.id not in self._applications:
            raise KeyError(application.id)
        self._applications[application.id] = application.model_copy(deep=True)

    async def ping(self) -> None:
        """Always reachable."""
