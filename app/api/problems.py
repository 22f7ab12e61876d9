"""Exception handlers rendering every error as application/problem+json."""

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import (
    FieldViolation,
    ForbiddenError,
    NotFoundError,
    ProblemError,
    UnauthenticatedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

_STATUS_ERRORS: dict[int, type[ProblemError]] = {
    400: ValidationError,
    401: UnauthenticatedError,
    403: ForbiddenError,
    404: NotFoundError,
}


def problem_response(error: ProblemError, request: Request) -> JSONResponse:
    headers = {"WWW-Authenticate": "Cookie"} if error.status_code == 401 else None
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_problem(instance=request.url.path),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


async def handle_problem_error(request: Request, exc: ProblemError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message, extra={"path": request.url.path})
    return problem_response(exc, request)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    violations = [
        FieldViolation(
            field=".".join(str(p) for p in err.get("loc", ())[1:]) or "request",
            message=err.get("msg", "invalid value"),
        )
        for err in exc.errors()
    ]
    return problem_response(ValidationError(errors=violations), request)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised errors (unknown route, wrong method) in the same shape."""
    error_cls = _STATUS_ERRORS.get(exc.status_code)
    if error_cls is not None:
        return problem_response(error_cls(str(exc.detail)), request)
    try:
        title = HTTPStatus(exc.status_code).phrase
    except ValueError:
        title = "Error"
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "type": "about:blank",
            "title": title,
            "status": exc.status_code,
            "detail": str(exc.detail),
            "instance": request.url.path,
        },
        media_type=PROBLEM_MEDIA_TYPE,
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return problem_response(ProblemError(), request)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProblemError, handle_problem_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)
