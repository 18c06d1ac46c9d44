from __future__ import annotations

from dataclasses import dataclass
import logging

from state_backend.domain.contracts import LockStore, StateStore
from state_backend.domain.errors import LockConflictError, ResourceNotLockedError, StateNotFoundError
from state_backend.domain.models import LockRecord, StateRecord

logger = logging.getLogger("state_backend.resources")


@dataclass(frozen=True)
class ResourceRepository:
    """Caller-visible operations over the state and lock stores.

    Holds nothing but the two store handles; every call reads fresh rows.
    Store errors propagate unchanged, retry policy belongs to the caller.
    """

    state_store: StateStore
    lock_store: LockStore

    async def read(self, resource_id: str) -> StateRecord:
        record = await self.state_store.get(resource_id=resource_id)
        if record is None:
            raise StateNotFoundError(resource_id)
        return record

    async def write(self, resource_id: str, state: str, presented_lock_id: str) -> StateRecord:
        lock = await self.lock_store.get_by_resource(resource_id=resource_id)
        if lock is None:
            logger.info(
                "write rejected, resource not locked",
                extra={"resource_id": resource_id, "lock_id": presented_lock_id},
            )
            raise ResourceNotLockedError(resource_id)
        if lock.lock_id != presented_lock_id:
            logger.info(
                "write rejected, lock held by another id",
                extra={"resource_id": resource_id, "lock_id": presented_lock_id},
            )
            raise LockConflictError(lock)
        return await self.state_store.replace(resource_id=resource_id, state=state)

    async def lock(self, resource_id: str, lock_id: str, payload: str) -> LockRecord:
        try:
            record = await self.lock_store.acquire(resource_id=resource_id, lock_id=lock_id, payload=payload)
        except LockConflictError as exc:
            logger.info(
                "lock conflict",
                extra={"resource_id": resource_id, "lock_id": lock_id, "holder_lock_id": exc.holder.lock_id},
            )
            raise
        logger.info("lock acquired", extra={"resource_id": resource_id, "lock_id": lock_id})
        return record

    async def unlock(self, resource_id: str, lock_id: str) -> bool:
        released = await self.lock_store.release(resource_id=resource_id, lock_id=lock_id)
        if released:
            logger.info("lock released", extra={"resource_id": resource_id, "lock_id": lock_id})
        else:
            logger.warning("unlock matched no lock", extra={"resource_id": resource_id, "lock_id": lock_id})
        return released
