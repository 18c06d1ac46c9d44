from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from state_backend.api.auth import BasicAuthGate
from state_backend.api.handlers.deps import ApiDeps
from state_backend.config import Settings
from state_backend.domain.contracts import LockStore, StateStore
from state_backend.domain.resources import ResourceRepository
from state_backend.repositories.postgres import AsyncpgPoolManager, PostgresLockStore, PostgresStateStore
from state_backend.repositories.stub import InMemoryLockStore, InMemoryStateStore


@dataclass
class RuntimeContainer:
    state_store: StateStore
    lock_store: LockStore
    resources: ResourceRepository
    api_deps: ApiDeps
    pool_manager: AsyncpgPoolManager | None
    on_startup: Callable[[], Awaitable[None]] | None
    on_shutdown: Callable[[], Awaitable[None]] | None


def build_runtime_container(settings: Settings) -> RuntimeContainer:
    pool_manager: AsyncpgPoolManager | None = None
    on_startup: Callable[[], Awaitable[None]] | None = None
    on_shutdown: Callable[[], Awaitable[None]] | None = None
    state_store: StateStore
    lock_store: LockStore
    if settings.database_url:
        pool_manager = AsyncpgPoolManager(
            dsn=settings.database_url,
            min_size=settings.database_pool_min_size,
            max_size=settings.database_pool_max_size,
            migrate_on_startup=settings.database_migrate_on_startup,
        )
        state_store = PostgresStateStore(pool_manager=pool_manager)
        lock_store = PostgresLockStore(pool_manager=pool_manager)
        on_startup = pool_manager.startup
        on_shutdown = pool_manager.shutdown
    else:
        state_store = InMemoryStateStore()
        lock_store = InMemoryLockStore()

    resources = ResourceRepository(state_store=state_store, lock_store=lock_store)
    auth = BasicAuthGate(username=settings.http_username, password=settings.http_password)
    if pool_manager is not None:
        manager = pool_manager
        api_deps = ApiDeps(
            resources=resources,
            auth=auth,
            backend="postgres",
            is_ready=lambda: manager.is_open,
        )
    else:
        api_deps = ApiDeps(resources=resources, auth=auth, backend="memory")

    return RuntimeContainer(
        state_store=state_store,
        lock_store=lock_store,
        resources=resources,
        api_deps=api_deps,
        pool_manager=pool_manager,
        on_startup=on_startup,
        on_shutdown=on_shutdown,
    )
