"""
Maps core error kinds to HTTP responses.

AuthorizationError deliberately renders exactly like NotFoundError so that
non-owners cannot tell whether a housing share exists.
"""
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from housing.api.schemas.housing_share import ErrorResponse
from housing.domain.errors import (
    AuthorizationError,
    HousingShareError,
    MediaError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

ERROR_STATUS_MAP: dict[type[HousingShareError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    AuthorizationError: 404,
    MediaError: 502,
    StorageError: 503,
}

_NOT_FOUND = ErrorResponse(code=NotFoundError.code, message="Housing share not found.")


def _status_for(error: HousingShareError) -> int:
    for error_type, status_code in ERROR_STATUS_MAP.items():
        if isinstance(error, error_type):
            return status_code
    return 500


def error_response(error: HousingShareError) -> ErrorResponse:
    if isinstance(error, (NotFoundError, AuthorizationError)):
        return _NOT_FOUND
    if isinstance(error, ValidationError):
        return ErrorResponse(code=error.code, message=error.message, errors=error.violations)
    if isinstance(error, MediaError):
        errors = list(error.failures)
        if error.orphaned_ids:
            errors.append(f"orphaned media: {', '.join(error.orphaned_ids)}")
        return ErrorResponse(code=error.code, message=error.message, errors=errors)
    if isinstance(error, StorageError) and error.rollback and error.rollback.orphaned_ids:
        return ErrorResponse(
            code=error.code,
            message=error.message,
            errors=[f"orphaned media: {', '.join(error.rollback.orphaned_ids)}"],
        )
    return ErrorResponse(code=error.code, message=error.message)


async def housing_share_error_handler(request: Request, exc: HousingShareError) -> JSONResponse:
    status_code = _status_for(exc)
    logger.info(
        "request_failed",
        path=request.url.path,
        code=exc.code,
        status_code=status_code,
        error=str(exc),
    )
    body = error_response(exc).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HousingShareError, housing_share_error_handler)  # type: ignore[arg-type]
