"""Maps every failure that reaches the HTTP boundary onto one ErrorResponse body."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskapi.domain.errors import InvalidParameterError, TaskNotFoundError, UnauthorizedError

from .schemas import ErrorResponse

logger = logging.getLogger(__name__)

MALFORMED_BODY = "Malformed request body"
_BODY_SHAPE_ERRORS = {"json_invalid", "model_attributes_type", "dict_type", "model_type"}
_PARAM_LOCATIONS = {"query", "path", "header", "cookie"}


def error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    field_errors: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        status=status_code,
        error=error,
        message=message,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
        field_errors=field_errors,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=headers,
    )


def _is_malformed_body(err: dict[str, Any]) -> bool:
    loc = err.get("loc", ())
    if not loc or loc[0] != "body":
        return False
    return len(loc) == 1 or err.get("type") in _BODY_SHAPE_ERRORS


def _field_message(err: dict[str, Any]) -> str:
    return str(err.get("msg", "Invalid value")).removeprefix("Value error, ")


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()

    if any(_is_malformed_body(err) for err in errors):
        return error_response(request, 400, "Bad Request", MALFORMED_BODY)

    param_errors = [err for err in errors if err["loc"] and err["loc"][0] in _PARAM_LOCATIONS]
    if param_errors:
        first = param_errors[0]
        invalid = InvalidParameterError(first["loc"][-1], first.get("input"))
        return error_response(request, 400, "Bad Request", str(invalid))

    field_errors: dict[str, str] = {}
    for err in errors:
        key = ".".join(str(part) for part in err["loc"][1:])
        field_errors.setdefault(key, _field_message(err))
    return error_response(
        request, 400, "Validation Failed", "Request body has invalid fields", field_errors
    )


async def handle_invalid_parameter(request: Request, exc: InvalidParameterError) -> JSONResponse:
    return error_response(request, 400, "Bad Request", str(exc))


async def handle_not_found(request: Request, exc: TaskNotFoundError) -> JSONResponse:
    return error_response(request, 404, "Not Found", str(exc))


async def handle_unauthorized(request: Request, exc: UnauthorizedError) -> JSONResponse:
    return error_response(
        request, 401, "Unauthorized", str(exc), headers={"WWW-Authenticate": "Bearer"}
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(
        request,
        exc.status_code,
        HTTPStatus(exc.status_code).phrase,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(request, 500, "Internal Server Error", "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(InvalidParameterError, handle_invalid_parameter)
    app.add_exception_handler(TaskNotFoundError, handle_not_found)
    app.add_exception_handler(UnauthorizedError, handle_unauthorized)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
