from __future__ import annotations

from state_backend.api.handlers.deps import ApiDeps
from state_backend.api.handlers.payloads import parse_lock_info

COMPONENT_ID = "api.lock"


async def lock_resource_handler(*, resource_id: str, body: bytes, api_deps: ApiDeps) -> str:
    info, payload = parse_lock_info(body)
    await api_deps.resources.lock(resource_id, info.ID, payload)
    return payload


async def unlock_resource_handler(*, resource_id: str, body: bytes, api_deps: ApiDeps) -> str:
    # Release of an absent lock is still reported as success.
    info, payload = parse_lock_info(body)
    await api_deps.resources.unlock(resource_id, info.ID)
    return payload
