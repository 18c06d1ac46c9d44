from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from state_backend.domain.errors import (
    BackendUnavailableError,
    BadInputError,
    ConflictError,
    InternalError,
    NotFoundError,
    StateBackendError,
    UnauthorizedError,
)

# Canonical error vocabulary shared by the stores and the HTTP layer.
ErrorCode = Literal[
    "not_found",
    "conflict",
    "bad_input",
    "unauthorized",
    "backend_unavailable",
    "internal_error",
]

RetryClassification = Literal["retryable", "terminal"]

CANONICAL_ERROR_CODES: tuple[ErrorCode, ...] = (
    "not_found",
    "conflict",
    "bad_input",
    "unauthorized",
    "backend_unavailable",
    "internal_error",
)

# Only database-level failures may succeed when the caller tries again.
RETRYABLE_ERROR_CODES: frozenset[ErrorCode] = frozenset({"backend_unavailable"})

HTTP_STATUS_BY_CODE: Mapping[ErrorCode, int] = {
    "not_found": 404,
    "conflict": 409,
    "bad_input": 400,
    "unauthorized": 401,
    "backend_unavailable": 502,
    "internal_error": 500,
}

# Ordered most specific first; the first match wins.
_CODE_BY_EXCEPTION: tuple[tuple[type[StateBackendError], ErrorCode], ...] = (
    (NotFoundError, "not_found"),
    (ConflictError, "conflict"),
    (BadInputError, "bad_input"),
    (UnauthorizedError, "unauthorized"),
    (BackendUnavailableError, "backend_unavailable"),
    (InternalError, "internal_error"),
)


def is_canonical_error_code(code: str) -> bool:
    return code in CANONICAL_ERROR_CODES


def classify_error(code: ErrorCode) -> RetryClassification:
    if code in RETRYABLE_ERROR_CODES:
        return "retryable"
    return "terminal"


def error_code_for(exc: BaseException) -> ErrorCode:
    for exc_type, code in _CODE_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return code
    return "internal_error"


def http_status_for(code: str) -> int:
    if is_canonical_error_code(code):
        return HTTP_STATUS_BY_CODE[code]  # type: ignore[index]
    return HTTP_STATUS_BY_CODE["internal_error"]
