"""Exception handlers mapping failures to the error envelope.

Every error leaves the API as ``{"success": false, "error": "<message>"}``.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lockerdrop.jobs.service import (
    InvalidTransitionError,
    JobNotFoundError,
    JobServiceError,
    JobValidationError,
    UnauthorizedError,
)

from .logging_config import get_logger

logger = get_logger("lockerdrop.api.errors")

# Conflicts are reported as 400 to match the existing client contract
JOB_ERROR_STATUS: dict[type[JobServiceError], int] = {
    JobValidationError: status.HTTP_400_BAD_REQUEST,
    JobNotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    InvalidTransitionError: status.HTTP_400_BAD_REQUEST,
}


def error_response(
    status_code: int, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def status_for(exc: JobServiceError) -> int:
    for error_type, code in JOB_ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def job_service_error_handler(request: Request, exc: JobServiceError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} | {type(exc).__name__} | {exc}")
    return error_response(status_for(exc), str(exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report the first invalid field as a 400."""
    errors = exc.errors()
    if not errors:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request")
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return error_response(
        status.HTTP_400_BAD_REQUEST, f"{field}: {message}" if field else message
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(JobServiceError, job_service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
