"""
Error taxonomy shared by the routers and the persistence layer, plus the
handlers that turn every failure into the JSON error envelope.
"""
import logging
from typing import Any, Dict, Iterable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class FinanceTrackerError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FinanceTrackerError):
    """Record is missing or belongs to another user."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")


class DuplicateResourceError(FinanceTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationFailed(FinanceTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST


def error_body(message: str) -> Dict[str, Any]:
    return {"success": False, "message": message}


def format_validation_errors(errors: Iterable[Dict[str, Any]]) -> str:
    """
    Join pydantic error entries into one readable message, e.g.
    "amount: Amount cannot be negative, category: Please select a valid category".
    """
    messages = []
    for err in errors:
        msg = str(err.get("msg", "Invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return ", ".join(messages) or "Invalid request"


async def _finance_error_handler(request: Request, exc: FinanceTrackerError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(format_validation_errors(exc.errors())),
    )


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FinanceTrackerError, _finance_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
