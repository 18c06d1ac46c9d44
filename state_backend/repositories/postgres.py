from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
import logging
from typing import Any

import asyncpg

from state_backend.domain.errors import BackendUnavailableError, LockConflictError
from state_backend.domain.models import LockRecord, StateRecord
from state_backend.repositories.sql_loader import SCHEMA_UP, load_sql


SQL_BOOTSTRAP_SCHEMA = load_sql(SCHEMA_UP)
SQL_GET_STATE = load_sql("get_state.sql")
SQL_REPLACE_STATE = load_sql("replace_state.sql")
SQL_GET_LOCK_BY_RESOURCE = load_sql("get_lock_by_resource.sql")
SQL_INSERT_LOCK_IF_ABSENT = load_sql("insert_lock_if_absent.sql")
SQL_RELEASE_LOCK = load_sql("release_lock.sql")

# A holder may release between our no-op insert and the re-read; try again
# a bounded number of times before giving up.
ACQUIRE_ATTEMPTS = 5

logger = logging.getLogger("state_backend.postgres")


@contextmanager
def _database_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        logger.error("database operation failed", extra={"operation": operation, "error": repr(exc)})
        raise BackendUnavailableError(f"database error during {operation}") from exc


def _state_from_row(row: Any) -> StateRecord:
    return StateRecord(id=row["id"], state=row["state"], updated_at=row["updated_at"])


def _lock_from_row(row: Any) -> LockRecord:
    return LockRecord(
        lock_id=row["id"],
        resource_id=row["resource_id"],
        payload=row["state"],
        updated_at=row["updated_at"],
    )


@dataclass
class AsyncpgPoolManager:
    dsn: str
    min_size: int = 1
    max_size: int = 5
    migrate_on_startup: bool = True
    pool: Any | None = None

    async def startup(self) -> None:
        with _database_errors("pool startup"):
            self.pool = await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
            )
            if self.migrate_on_startup:
                await self.migrate()

    async def migrate(self) -> None:
        async with self.require_pool().acquire() as conn:
            await conn.execute(SQL_BOOTSTRAP_SCHEMA)
        logger.info("schema migration applied")

    async def shutdown(self) -> None:
        if self.pool is None:
            return
        await self.pool.close()
        self.pool = None

    @property
    def is_open(self) -> bool:
        return self.pool is not None

    def require_pool(self) -> Any:
        if self.pool is None:
            raise BackendUnavailableError("postgres pool is not initialized")
        return self.pool


@dataclass
class PostgresStateStore:
    pool_manager: AsyncpgPoolManager

    async def get(self, *, resource_id: str) -> StateRecord | None:
        pool = self.pool_manager.require_pool()
        with _database_errors("get state"):
            row = await pool.fetchrow(SQL_GET_STATE, resource_id)
        if row is None:
            return None
        return _state_from_row(row)

    async def replace(self, *, resource_id: str, state: str) -> StateRecord:
        pool = self.pool_manager.require_pool()
        with _database_errors("replace state"):
            row = await pool.fetchrow(SQL_REPLACE_STATE, resource_id, state)
        if row is None:
            raise BackendUnavailableError("state upsert returned no row")
        return _state_from_row(row)


@dataclass
class PostgresLockStore:
    pool_manager: AsyncpgPoolManager

    async def get_by_resource(self, *, resource_id: str) -> LockRecord | None:
        pool = self.pool_manager.require_pool()
        with _database_errors("get lock"):
            row = await pool.fetchrow(SQL_GET_LOCK_BY_RESOURCE, resource_id)
        if row is None:
            return None
        return _lock_from_row(row)

    async def acquire(self, *, resource_id: str, lock_id: str, payload: str) -> LockRecord:
        pool = self.pool_manager.require_pool()
        with _database_errors("acquire lock"):
            async with pool.acquire() as conn:
                async with conn.transaction():
                    for _ in range(ACQUIRE_ATTEMPTS):
                        await conn.execute(SQL_INSERT_LOCK_IF_ABSENT, lock_id, resource_id, payload)
                        # Read committed: this statement sees the row that won,
                        # whether it is ours or a concurrent holder's.
                        row = await conn.fetchrow(SQL_GET_LOCK_BY_RESOURCE, resource_id)
                        if row is not None:
                            break
                    else:
                        raise BackendUnavailableError(f"lock row for '{resource_id}' vanished during acquire")

        current = _lock_from_row(row)
        if current.lock_id != lock_id:
            raise LockConflictError(current)
        return current

    async def release(self, *, resource_id: str, lock_id: str) -> bool:
        pool = self.pool_manager.require_pool()
        with _database_errors("release lock"):
            deleted = await pool.fetchval(SQL_RELEASE_LOCK, lock_id, resource_id)
        return deleted is not None
