from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import Awaitable, Callable
import logging

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from state_backend.api.errors import register_error_handlers
from state_backend.api.handlers.deps import ApiDeps
from state_backend.api.handlers.lock import lock_resource_handler, unlock_resource_handler
from state_backend.api.handlers.state import read_state_handler, write_state_handler
from state_backend.api.schemas import ErrorResponse, HealthResponse, ReadyResponse

SERVICE_NAME = "state-backend"

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def build_app(
    run_id: str,
    api_deps: ApiDeps,
    on_startup: Callable[[], Awaitable[None]] | None = None,
    on_shutdown: Callable[[], Awaitable[None]] | None = None,
) -> FastAPI:
    logger = logging.getLogger("runtime")
    http_basic = HTTPBasic(auto_error=False)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        del app
        logger.info(
            "service started",
            extra={"service": SERVICE_NAME, "run_id": run_id},
        )

        if on_startup is not None:
            await on_startup()

        yield

        if on_shutdown is not None:
            await on_shutdown()

        logger.info(
            "service stopped",
            extra={"service": SERVICE_NAME, "run_id": run_id},
        )

    app = FastAPI(title=SERVICE_NAME, version="0.1.0", lifespan=lifespan)
    register_error_handlers(app)

    async def require_credentials(
        credentials: HTTPBasicCredentials | None = Depends(http_basic),  # noqa: B008
    ) -> str:
        return api_deps.auth.verify(credentials)

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service=SERVICE_NAME)

    @app.get("/ready", response_model=ReadyResponse, tags=["System"])
    async def ready(response: Response) -> ReadyResponse:
        database_ready = api_deps.is_ready()
        if not database_ready:
            response.status_code = 503
        return ReadyResponse(
            status="ready" if database_ready else "unavailable",
            service=SERVICE_NAME,
            backend=api_deps.backend,
            database_ready=database_ready,
        )

    @app.get(
        "/terraform/{resource_id}",
        responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse}},
        tags=["State"],
    )
    async def get_state(resource_id: str, _user: str = Depends(require_credentials)) -> Response:
        state = await read_state_handler(resource_id=resource_id, api_deps=api_deps)
        return Response(content=state, media_type="application/json")

    @app.post(
        "/terraform/{resource_id}",
        responses={**_ERROR_RESPONSES, 409: {"description": "Lock held by another ID or resource not locked"}},
        tags=["State"],
    )
    async def post_state(
        resource_id: str,
        request: Request,
        lock_id: str | None = Query(default=None, alias="ID"),
        _user: str = Depends(require_credentials),
    ) -> Response:
        state = await write_state_handler(
            resource_id=resource_id,
            lock_id=lock_id,
            body=await request.body(),
            api_deps=api_deps,
        )
        return Response(content=state, media_type="application/json")

    @app.api_route(
        "/terraform/{resource_id}/lock",
        methods=["POST", "LOCK"],
        responses={**_ERROR_RESPONSES, 409: {"description": "Current holder's lock info"}},
        tags=["Lock"],
    )
    async def lock_resource(
        resource_id: str,
        request: Request,
        _user: str = Depends(require_credentials),
    ) -> Response:
        payload = await lock_resource_handler(
            resource_id=resource_id,
            body=await request.body(),
            api_deps=api_deps,
        )
        return Response(content=payload, media_type="application/json")

    @app.api_route(
        "/terraform/{resource_id}/lock",
        methods=["DELETE", "UNLOCK"],
        responses=_ERROR_RESPONSES,
        tags=["Lock"],
    )
    async def unlock_resource(
        resource_id: str,
        request: Request,
        _user: str = Depends(require_credentials),
    ) -> Response:
        payload = await unlock_resource_handler(
            resource_id=resource_id,
            body=await request.body(),
            api_deps=api_deps,
        )
        return Response(content=payload, media_type="application/json")

    return app
