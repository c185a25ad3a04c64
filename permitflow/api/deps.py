"""FastAPI dependencies."""

from fastapi import Request

from permitflow.engine.service import PermitService


def get_service(request: Request) -> PermitService:
    """Service instance owned by the running app."""
    return request.app.state.permit_service
