"""Repository protocol interfaces for data access."""

from typing import Protocol

from permitflow.models.application import Application


class ApplicationRepository(Protocol):
    """Repository for permit application aggregates.

    Implementations store and return independent copies: mutating a returned
    application has no effect until it is passed back to ``update``.
    """

    async def add(self, application: Application) -> None:
        """Persist a newly created application.

        Args:
            application: Application with a fresh id
        """
        ...

    async def get(self, application_id: str) -> Application | None:
        """Get application by ID.

        Args:
            application_id: Application ID

        Returns:
            Application or None if not found
        """
        ...

    async def list(self) -> list[Application]:
        """List all applications in creation order.

        Returns:
            Applications, oldest first
        """
        ...

    async def update(self, application: Application) -> None:
        """Replace a stored application with a new snapshot.

        Args:
            application: Full application state to store
        """
        ...

    async def ping(self) -> None:
        """Check the backing store is reachable; raise on failure."""
        ...
