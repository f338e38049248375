# app/core/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    message = "Unexpected error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class StoreError(AppError):
    """The backing store rejected or failed an operation."""

    status_code = 503
    message = "Ticket store unavailable"


class TicketNotFound(AppError):
    status_code = 404
    message = "Ticket not found"


class NothingToExport(AppError):
    status_code = 404
    message = "Non ci sono ticket nel periodo selezionato"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
