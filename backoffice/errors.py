"""
Error taxonomy shared by services and routers.

Every error is an ``HTTPException`` so a service can raise it directly and
the application handlers render it as ``{"error": "<message>"}``.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class BackofficeError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message


class UnauthenticatedError(BackofficeError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class InvalidRequestError(BackofficeError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BackofficeError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, identifier=None):
        if identifier is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} {identifier} not found"
        super().__init__(message)


class ConflictError(BackofficeError):
    """A business rule blocks the operation; the message says what to do instead."""

    status_code = status.HTTP_409_CONFLICT


class PersistenceError(BackofficeError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(parts) or "Invalid request"},
    )


async def persistence_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("persistence failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc.orig) if getattr(exc, "orig", None) else str(exc)},
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, persistence_exception_handler)
