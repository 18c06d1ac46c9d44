"""Exception handlers turning store and request errors into HTTP responses.

Status codes come from the error taxonomy:

- ``NotFoundError`` -> 404
- ``ConflictError`` -> 409, body is the holder's lock payload (empty when
  the resource is not locked at all)
- ``BadInputError`` -> 400
- ``UnauthorizedError`` -> 401 with a ``WWW-Authenticate`` challenge
- ``BackendUnavailableError`` -> 502
- ``InternalError`` and anything unexpected -> 500
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from state_backend.api.handlers.payloads import ensure_stored_json
from state_backend.api.schemas import ErrorResponse
from state_backend.domain.error_taxonomy import classify_error, error_code_for, http_status_for
from state_backend.domain.errors import (
    LockConflictError,
    ResourceNotLockedError,
    SerializationError,
    StateBackendError,
    UnauthorizedError,
)

logger = logging.getLogger("state_backend.api")

_PUBLIC_MESSAGES = {
    "backend_unavailable": "Bad Gateway",
    "internal_error": "Internal Server Error",
}


def _error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    body = ErrorResponse(message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


async def _handle_lock_conflict(request: Request, exc: LockConflictError) -> Response:
    try:
        payload = ensure_stored_json(exc.holder.payload, what="lock payload")
    except SerializationError as serialization_exc:
        return await _handle_state_backend_error(request, serialization_exc)
    return Response(status_code=409, content=payload, media_type="application/json")


async def _handle_not_locked(request: Request, exc: ResourceNotLockedError) -> Response:
    del request, exc
    return Response(status_code=409)


async def _handle_unauthorized(request: Request, exc: UnauthorizedError) -> JSONResponse:
    logger.info("unauthorized request", extra={"method": request.method, "path": request.url.path})
    return _error_response(401, "Unauthorized", headers={"WWW-Authenticate": "Basic"})


async def _handle_state_backend_error(request: Request, exc: StateBackendError) -> JSONResponse:
    code = error_code_for(exc)
    status_code = http_status_for(code)
    extra = {"method": request.method, "path": request.url.path, "error": code}
    if classify_error(code) == "retryable" or status_code >= 500:
        logger.error("request failed", extra=extra, exc_info=exc)
    else:
        logger.info("request rejected", extra=extra)
    return _error_response(status_code, _PUBLIC_MESSAGES.get(code, str(exc)))


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled exception",
        extra={"method": request.method, "path": request.url.path},
        exc_info=exc,
    )
    return _error_response(500, _PUBLIC_MESSAGES["internal_error"])


def register_error_handlers(app: FastAPI) -> None:
    # Starlette resolves handlers along the exception MRO, so the specific
    # subclasses win over the StateBackendError fallback.
    app.add_exception_handler(LockConflictError, _handle_lock_conflict)  # type: ignore[arg-type]
    app.add_exception_handler(ResourceNotLockedError, _handle_not_locked)  # type: ignore[arg-type]
    app.add_exception_handler(UnauthorizedError, _handle_unauthorized)  # type: ignore[arg-type]
    app.add_exception_handler(StateBackendError, _handle_state_backend_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)
