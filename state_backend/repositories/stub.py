from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from state_backend.domain.errors import LockConflictError
from state_backend.domain.models import LockRecord, StateRecord


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class InMemoryStateStore:
    """Non-network state store with deterministic behavior for local mode."""

    rows: dict[str, StateRecord] = field(default_factory=dict)

    async def get(self, *, resource_id: str) -> StateRecord | None:
        return self.rows.get(resource_id)

    async def replace(self, *, resource_id: str, state: str) -> StateRecord:
        record = StateRecord(id=resource_id, state=state, updated_at=_now())
        self.rows[resource_id] = record
        return record


@dataclass
class InMemoryLockStore:
    """Non-network lock store.

    No method awaits between reading and writing ``rows``, so on a single
    event loop each acquire runs to completion before another can observe
    the table.
    """

    rows: dict[str, LockRecord] = field(default_factory=dict)

    async def get_by_resource(self, *, resource_id: str) -> LockRecord | None:
        return self.rows.get(resource_id)

    async def acquire(self, *, resource_id: str, lock_id: str, payload: str) -> LockRecord:
        current = self.rows.setdefault(
            resource_id,
            LockRecord(lock_id=lock_id, resource_id=resource_id, payload=payload, updated_at=_now()),
        )
        if current.lock_id != lock_id:
            raise LockConflictError(current)
        return current

    async def release(self, *, resource_id: str, lock_id: str) -> bool:
        current = self.rows.get(resource_id)
        released = current is not None and current.lock_id == lock_id
        if released:
            del self.rows[resource_id]
        return released
