import asyncio

import pytest

from state_backend.domain.contracts import ACQUIRE_SQL_CONTRACT, REPLACE_SQL_CONTRACT, LockStore, StateStore
from state_backend.domain.errors import LockConflictError
from state_backend.domain.models import LockRecord
from state_backend.repositories.stub import InMemoryLockStore, InMemoryStateStore


async def _attempt(store: InMemoryLockStore, resource_id: str, lock_id: str) -> LockRecord | LockConflictError:
    try:
        return await store.acquire(resource_id=resource_id, lock_id=lock_id, payload=f"payload-{lock_id}")
    except LockConflictError as exc:
        return exc


@pytest.mark.unit
def test_contracts_document_atomic_statements() -> None:
    assert "ON CONFLICT (resource_id) DO NOTHING" in ACQUIRE_SQL_CONTRACT
    assert "ON CONFLICT (id) DO UPDATE" in REPLACE_SQL_CONTRACT


@pytest.mark.unit
def test_in_memory_stores_satisfy_contracts() -> None:
    assert isinstance(InMemoryStateStore(), StateStore)
    assert isinstance(InMemoryLockStore(), LockStore)


@pytest.mark.unit
def test_concurrent_acquires_never_produce_two_winners() -> None:
    async def _run() -> None:
        store = InMemoryLockStore()
        for round_no in range(100):
            resource_id = f"res-{round_no}"
            results = await asyncio.gather(
                _attempt(store, resource_id, "A"),
                _attempt(store, resource_id, "B"),
            )
            winners = [r for r in results if isinstance(r, LockRecord)]
            conflicts = [r for r in results if isinstance(r, LockConflictError)]
            assert len(winners) == 1
            assert len(conflicts) == 1
            assert conflicts[0].holder == winners[0]
            assert store.rows[resource_id] == winners[0]

    asyncio.run(_run())


@pytest.mark.unit
def test_conflict_carries_full_holder_record() -> None:
    store = InMemoryLockStore()

    async def _run() -> LockConflictError:
        await store.acquire(resource_id="105", lock_id="L1", payload='{"ID": "L1"}')
        result = await _attempt(store, "105", "L2")
        assert isinstance(result, LockConflictError)
        return result

    conflict = asyncio.run(_run())

    assert conflict.holder.lock_id == "L1"
    assert conflict.holder.resource_id == "105"
    assert conflict.holder.payload == '{"ID": "L1"}'
    assert conflict.holder.updated_at is not None
