from __future__ import annotations

import argparse
import logging
import sys
import uuid

from fastapi import FastAPI
import uvicorn

from state_backend.api.http_app import SERVICE_NAME, build_app
from state_backend.config import Settings, settings_from_env
from state_backend.domain.errors import ConfigurationError
from state_backend.logging_setup import configure_logging
from state_backend.services.bootstrap import build_runtime_container


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="HTTP remote state backend")
    parser.add_argument("--host", default=None, help="Bind address (default: HTTP_BIND_ADDRESS)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: HTTP_PORT)")
    parser.add_argument(
        "--dry-run-startup",
        action="store_true",
        help="Validate configuration and exit",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable code reload (dev mode)",
    )
    return parser.parse_args(argv)


def _build_app(settings: Settings, run_id: str) -> FastAPI:
    container = build_runtime_container(settings)
    return build_app(
        run_id=run_id,
        api_deps=container.api_deps,
        on_startup=container.on_startup,
        on_shutdown=container.on_shutdown,
    )


def create_runtime_app() -> FastAPI:
    settings = settings_from_env()
    configure_logging(settings.log_level)
    return _build_app(settings, run_id=str(uuid.uuid4()))


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        settings = settings_from_env()
    except ConfigurationError as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        return 2

    configure_logging(settings.log_level)
    run_id = str(uuid.uuid4())
    logger = logging.getLogger("runtime")
    backend = "postgres" if settings.database_url else "memory"

    logger.info(
        "runtime initialized",
        extra={"service": SERVICE_NAME, "run_id": run_id, "backend": backend},
    )

    if args.dry_run_startup:
        logger.info(
            "dry-run startup complete",
            extra={"service": SERVICE_NAME, "run_id": run_id},
        )
        return 0

    host = args.host if args.host is not None else settings.http_bind_address
    port = args.port if args.port is not None else settings.http_port
    if args.reload:
        uvicorn.run(
            "state_backend.main:create_runtime_app",
            host=host,
            port=port,
            log_level="warning",
            reload=True,
            factory=True,
        )
    else:
        app = _build_app(settings, run_id=run_id)
        uvicorn.run(app, host=host, port=port, log_level="warning")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
