from __future__ import annotations

from typing import Protocol, runtime_checkable

from state_backend.domain.models import LockRecord, StateRecord


ACQUIRE_SQL_CONTRACT = "INSERT ... ON CONFLICT (resource_id) DO NOTHING; SELECT ... WHERE resource_id = $1"
REPLACE_SQL_CONTRACT = "INSERT ... ON CONFLICT (id) DO UPDATE ... RETURNING"


@runtime_checkable
class StateStore(Protocol):
    """Key to blob storage with overwrite semantics.

    Replace must be a single atomic upsert; lock ownership is checked by the
    caller, never here.
    """

    async def get(self, *, resource_id: str) -> StateRecord | None: ...

    async def replace(self, *, resource_id: str, state: str) -> StateRecord: ...


@runtime_checkable
class LockStore(Protocol):
    """Exclusive-access arbitration per resource id.

    Acquire semantics must remain compatible with the conditional insert
    followed by a re-read inside one transaction; the unique constraint on
    resource_id is the only source of mutual exclusion.
    """

    async def get_by_resource(self, *, resource_id: str) -> LockRecord | None: ...

    async def acquire(self, *, resource_id: str, lock_id: str, payload: str) -> LockRecord: ...

    async def release(self, *, resource_id: str, lock_id: str) -> bool: ...
