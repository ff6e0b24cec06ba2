"""
Error taxonomy and the per-route failure boundary.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CampusError(Exception):
    """Base error carrying the HTTP status and a client-safe message."""

    status_code: int = 500

    def __init__(self, message: str, *, envelope: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.envelope = dict(envelope or {})

    def as_payload(self) -> dict:
        return {**self.envelope, "error": self.message}


class ValidationError(CampusError):
    status_code = 400


class NotFoundError(CampusError):
    status_code = 404


class UploadError(CampusError):
    status_code = 500


class PersistenceError(CampusError):
    status_code = 500


class InternalError(CampusError):
    status_code = 500


@contextmanager
def failure_boundary(
    message: str, *, envelope: Optional[dict] = None
) -> Iterator[None]:
    """
    Wrap a handler body so nothing but `message` leaks on a server failure.

    Classified client errors (4xx) keep their own message. Server-side
    failures, classified or not, are logged and re-raised with the route's
    fixed message.
    """
    try:
        yield
    except CampusError as exc:
        if envelope:
            exc.envelope = {**envelope, **exc.envelope}
        if exc.status_code >= 500:
            logger.error("%s: %s", message, exc.message)
            exc.message = message
        raise
    except Exception as exc:
        logger.exception("%s", message)
        raise InternalError(message, envelope=envelope) from exc


async def campus_error_handler(request: Request, exc: CampusError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.as_payload())
