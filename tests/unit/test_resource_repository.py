import asyncio
import json
import logging

import pytest

from state_backend.domain.errors import LockConflictError, ResourceNotLockedError, StateNotFoundError
from state_backend.domain.resources import ResourceRepository
from state_backend.repositories.stub import InMemoryLockStore, InMemoryStateStore


def _repository() -> tuple[ResourceRepository, InMemoryStateStore, InMemoryLockStore]:
    state_store = InMemoryStateStore()
    lock_store = InMemoryLockStore()
    return ResourceRepository(state_store=state_store, lock_store=lock_store), state_store, lock_store


@pytest.mark.unit
def test_read_of_never_written_id_is_not_found() -> None:
    resources, _, _ = _repository()

    with pytest.raises(StateNotFoundError) as excinfo:
        asyncio.run(resources.read("never-written"))

    assert excinfo.value.resource_id == "never-written"


@pytest.mark.unit
def test_write_then_read_round_trips_and_overwrites() -> None:
    resources, state_store, _ = _repository()

    async def _run() -> None:
        await resources.lock("105", "L", '{"ID": "L"}')
        first = await resources.write("105", '{"v": 1}', "L")
        assert (await resources.read("105")).state == '{"v": 1}'

        second = await resources.write("105", '{"v": 2}', "L")
        assert second.state == '{"v": 2}'
        assert (await resources.read("105")).state == '{"v": 2}'
        assert first.updated_at is not None
        assert second.updated_at is not None
        assert second.updated_at >= first.updated_at

    asyncio.run(_run())
    assert list(state_store.rows) == ["105"]


@pytest.mark.unit
def test_write_without_lock_is_rejected_and_state_unchanged() -> None:
    resources, state_store, _ = _repository()

    with pytest.raises(ResourceNotLockedError):
        asyncio.run(resources.write("105", '{"v": 1}', "X"))

    assert state_store.rows == {}


@pytest.mark.unit
def test_write_with_other_holder_conflicts_with_holder_payload() -> None:
    resources, state_store, _ = _repository()
    holder_payload = json.dumps({"ID": "Y", "Who": "ci@runner"})

    async def _run() -> None:
        await state_store.replace(resource_id="105", state='{"v": 0}')
        await resources.lock("105", "Y", holder_payload)
        await resources.write("105", '{"v": 1}', "X")

    with pytest.raises(LockConflictError) as excinfo:
        asyncio.run(_run())

    assert excinfo.value.holder.lock_id == "Y"
    assert excinfo.value.holder.payload == holder_payload
    assert state_store.rows["105"].state == '{"v": 0}'


@pytest.mark.unit
def test_second_acquire_by_other_id_conflicts_and_keeps_first_lock() -> None:
    resources, _, lock_store = _repository()

    async def _run() -> None:
        await resources.lock("105", "L1", "P1")
        await resources.lock("105", "L2", "P2")

    with pytest.raises(LockConflictError) as excinfo:
        asyncio.run(_run())

    assert excinfo.value.holder.payload == "P1"
    stored = lock_store.rows["105"]
    assert (stored.lock_id, stored.payload) == ("L1", "P1")


@pytest.mark.unit
def test_reacquire_by_same_holder_succeeds() -> None:
    resources, _, _ = _repository()

    async def _run() -> None:
        first = await resources.lock("105", "L1", "P1")
        again = await resources.lock("105", "L1", "P1-retry")
        assert again == first
        assert again.payload == "P1"

    asyncio.run(_run())


@pytest.mark.unit
def test_release_frees_resource_for_next_holder() -> None:
    resources, _, lock_store = _repository()

    async def _run() -> None:
        await resources.lock("105", "L1", "P1")
        assert await resources.unlock("105", "L1") is True
        acquired = await resources.lock("105", "L2", "P2")
        assert acquired.lock_id == "L2"

    asyncio.run(_run())
    assert lock_store.rows["105"].payload == "P2"


@pytest.mark.unit
def test_release_with_wrong_lock_id_keeps_lock_and_reports_no_match(caplog: pytest.LogCaptureFixture) -> None:
    resources, _, lock_store = _repository()

    async def _run() -> bool:
        await resources.lock("105", "L1", "P1")
        return await resources.unlock("105", "other")

    with caplog.at_level(logging.WARNING, logger="state_backend.resources"):
        released = asyncio.run(_run())

    assert released is False
    assert lock_store.rows["105"].lock_id == "L1"
    assert [record.getMessage() for record in caplog.records] == ["unlock matched no lock"]
    assert caplog.records[0].lock_id == "other"


@pytest.mark.unit
def test_locks_on_different_resources_are_independent() -> None:
    resources, _, _ = _repository()

    async def _run() -> None:
        await resources.lock("a", "same-token", "Pa")
        await resources.lock("b", "same-token", "Pb")
        await resources.lock("c", "other", "Pc")

    asyncio.run(_run())


@pytest.mark.unit
def test_lock_payload_and_state_content_are_independent() -> None:
    resources, _, _ = _repository()

    async def _run() -> None:
        with pytest.raises(ResourceNotLockedError):
            await resources.write("105", '{"v":1}', "L")
        await resources.lock("105", "L", '{"v":1}')
        await resources.write("105", '{"v":2}', "L")
        assert (await resources.read("105")).state == '{"v":2}'
        with pytest.raises(LockConflictError) as excinfo:
            await resources.lock("105", "M", "{}")
        assert excinfo.value.holder.payload == '{"v":1}'

    asyncio.run(_run())
