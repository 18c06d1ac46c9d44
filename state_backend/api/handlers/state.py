from __future__ import annotations

from state_backend.api.handlers.deps import ApiDeps
from state_backend.api.handlers.payloads import decode_json_body, ensure_stored_json
from state_backend.domain.errors import BadInputError

COMPONENT_ID = "api.state"


async def read_state_handler(*, resource_id: str, api_deps: ApiDeps) -> str:
    record = await api_deps.resources.read(resource_id)
    return ensure_stored_json(record.state, what="state")


async def write_state_handler(
    *,
    resource_id: str,
    lock_id: str | None,
    body: bytes,
    api_deps: ApiDeps,
) -> str:
    if not lock_id:
        raise BadInputError("malformed request: missing lock ID query parameter")
    state = decode_json_body(body, what="state")
    record = await api_deps.resources.write(resource_id, state, lock_id)
    return record.state
