from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

logger = logging.getLogger(__name__)

INVALID_REQUEST_MESSAGE = "Invalid request"
USER_NOT_FOUND_MESSAGE = "User not found"


class InvalidRequestError(Exception):
    """Request body is not a non-empty JSON document of the expected shape."""


class UserValidationError(Exception):
    """One or more field rules were violated."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages))
        self.messages = messages


class ConstraintViolationError(Exception):
    """The datastore rejected a write because of a unique constraint."""


class UserNotFoundError(Exception):
    """The user id does not resolve to a stored record."""


async def _invalid_request_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return PlainTextResponse(
        INVALID_REQUEST_MESSAGE,
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def _validation_handler(request: Request, exc: Exception) -> JSONResponse:
    messages = exc.messages if isinstance(exc, UserValidationError) else [str(exc)]
    logger.info(
        "Validation failed for %s %s: %s",
        request.method,
        request.url.path,
        messages,
    )
    return JSONResponse(messages, status_code=status.HTTP_400_BAD_REQUEST)


async def _not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        {"detail": USER_NOT_FOUND_MESSAGE},
        status_code=status.HTTP_404_NOT_FOUND,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidRequestError, _invalid_request_handler)
    app.add_exception_handler(UserValidationError, _validation_handler)
    app.add_exception_handler(UserNotFoundError, _not_found_handler)
