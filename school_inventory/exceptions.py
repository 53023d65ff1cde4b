from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    code: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    default_code = "internal_error"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.code = code or self.default_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed input, rejected before any unit of work begins."""

    default_code = "invalid_input"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, code=code)


class AuthorizationError(AppError):
    """The actor may not perform the requested operation."""

    default_code = "forbidden"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, code=code)


class StateConflictError(AppError):
    """The request's current state does not allow the operation."""

    default_code = "invalid_transition"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, code=code)


class StockConflictError(AppError):
    """Not enough stock on hand to fulfill."""

    default_code = "insufficient_stock"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, code=code)


class NotFoundError(AppError):
    """Unknown request id or item name."""

    default_code = "not_found"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, code=code)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            code=exc.code,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            code=ValidationError.default_code,
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
