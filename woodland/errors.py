"""Exception handlers rendering the ``{success, message}`` JSON envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"
VALIDATION_ERROR_MESSAGE = "Validation failed"


def _clean_message(message: str) -> str:
    # pydantic prefixes messages raised from custom validators
    for prefix in ("Value error, ", "Assertion failed, "):
        if message.startswith(prefix):
            return message[len(prefix) :]
    return message


def field_errors(errors: list[dict]) -> dict[str, str]:
    """Flatten pydantic error dicts into ``{"field.path": "message"}``."""
    result: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body",)]
        field = ".".join(loc) or "__root__"
        result.setdefault(field, _clean_message(error.get("msg", "")))
    return result


def _validation_response(errors: list[dict]) -> JSONResponse:
    fields = field_errors(errors)
    message = next(iter(fields.values()), VALIDATION_ERROR_MESSAGE)
    return JSONResponse(
        {"success": False, "message": message, "errors": fields},
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _validation_response(list(exc.errors()))


async def model_validation_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    return _validation_response(exc.errors(include_url=False))


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        {"success": False, "message": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        {"success": False, "message": GENERIC_ERROR_MESSAGE},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, model_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
