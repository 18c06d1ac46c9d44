from __future__ import annotations

import json

from pydantic import ValidationError

from state_backend.api.schemas import LockInfo
from state_backend.domain.errors import BadInputError, SerializationError


def decode_json_body(raw: bytes, *, what: str) -> str:
    """Return the request body as text after checking it is a JSON document.

    The text is stored verbatim; parsing only guards against garbage.
    """
    try:
        text = raw.decode("utf-8")
        json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BadInputError(f"malformed payload: {what} must be a JSON document") from exc
    return text


def parse_lock_info(raw: bytes) -> tuple[LockInfo, str]:
    text = decode_json_body(raw, what="lock info")
    try:
        info = LockInfo.model_validate_json(text)
    except ValidationError as exc:
        raise BadInputError("malformed payload: missing or malformed ID") from exc
    return info, text


def ensure_stored_json(text: str, *, what: str) -> str:
    try:
        json.loads(text)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"stored {what} is not valid JSON") from exc
    return text
