"""FastAPI application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from permitflow.api.errors import register_exception_handlers
from permitflow.api.routes.applications import router as applications_router
from permitflow.api.routes.health import router as health_router
from permitflow.api.routes.metrics import router as metrics_router
from permitflow.config import Settings, get_settings
from permitflow.db.engine import build_repository, prepare_storage
from permitflow.db.repositories import ApplicationRepository
from permitflow.engine.analysis import AnalysisProvider, build_analysis_provider
from permitflow.engine.service import PermitService, StatusNotifier
from permitflow.utils.logging import configure_logging


def create_app(
    settings: Settings | None = None,
    *,
    repository: ApplicationRepository | None = None,
    provider: AnalysisProvider | None = None,
    notifier: StatusNotifier | None = None,
) -> FastAPI:
    """Build the API with its permit service.

    Args:
        settings: Settings (defaults to environment)
        repository: Override the configured application store
        provider: Override the configured analysis provider
        notifier: Optional status-change collaborator

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    service = PermitService(
        repository or build_repository(settings),
        provider or build_analysis_provider(settings),
        analysis_timeout_s=settings.analysis_timeout_ms / 1000,
        notifier=notifier,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await prepare_storage(service.repository, settings)
        yield
        # Let in-flight analyses settle before shutdown
        await service.wait_for_analyses()

    app = FastAPI(title="Permitflow API", version="0.1.0", lifespan=lifespan)
    app.state.permit_service = service

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(applications_router)
    register_exception_handlers(app)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "Permitflow API", "version": "0.1.0"}

    return app


app = create_app()
