"""Error responses for the session API."""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ApiError(Exception):
    """An error rendered as ``{"error": ..., "code": ...}``."""

    def __init__(
        self, status_code: int, message: str, code: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


def session_not_found() -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, "Session not found", "SESSION_NOT_FOUND")


async def handle_api_error(_request: Request, exc: ApiError) -> JSONResponse:
    """Render an ApiError."""
    content: dict[str, object] = {"error": exc.message}
    if exc.code is not None:
        content["code"] = exc.code
    return JSONResponse(status_code=exc.status_code, content=content)


async def handle_validation_error(
    _request: Request, _exc: RequestValidationError
) -> JSONResponse:
    """Report malformed bodies as 400 instead of FastAPI's default 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "code": "INVALID_REQUEST"},
    )
