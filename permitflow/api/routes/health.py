"""Health check endpoints.

- /health: liveness, always 200 while the process runs
- /healthz: checks the application store, 503 when it is unreachable
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from permitflow.api.deps import get_service
from permitflow.db.repositories import ApplicationRepository
from permitflow.engine.service import PermitService

router = APIRouter()


async def check_storage(repository: ApplicationRepository) -> tuple[bool, str]:
    """Check application store connectivity.

    Returns:
        (is_ok, status_message)
    """
    try:
        await repository.ping()
        return (True, "ok")
    except Exception as e:
        return (False, f"error: {type(e).__name__}")


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(
    service: Annotated[PermitService, Depends(get_service)],
) -> dict[str, Any] | JSONResponse:
    """Health check endpoint.

    Returns:
        200 with component status if storage is reachable
        503 otherwise
    """
    storage_ok, storage_status = await check_storage(service.repository)

    response_body = {
        "status": "ok" if storage_ok else "degraded",
        "components": {
            "storage": storage_status,
        },
    }

    if not storage_ok:
        return JSONResponse(content=response_body, status_code=503)

    return response_body
