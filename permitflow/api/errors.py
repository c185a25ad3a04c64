"""Map engine errors to HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from permitflow.engine.errors import (
    ApplicationValidationError,
    InvalidCategoryError,
    InvalidTransitionError,
    NotFoundError,
)


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers translating engine errors to status codes."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(InvalidCategoryError)
    async def invalid_category_handler(request: Request, exc: InvalidCategoryError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(
        request: Request, exc: InvalidTransitionError
    ) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.exception_handler(ApplicationValidationError)
    async def validation_handler(request: Request, exc: ApplicationValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors or str(exc)},
        )
