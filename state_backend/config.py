from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
import os

from state_backend.domain.errors import ConfigurationError


@dataclass(frozen=True)
class Settings:
    http_username: str
    http_password: str = field(repr=False)
    database_url: str | None = None
    http_bind_address: str = "0.0.0.0"
    http_port: int = 8080
    log_level: str = "INFO"
    database_pool_min_size: int = 1
    database_pool_max_size: int = 5
    database_migrate_on_startup: bool = True


def settings_from_env(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    username = env.get("TF_HTTP_USERNAME")
    password = env.get("TF_HTTP_PASSWORD")
    if not username or not password:
        raise ConfigurationError("TF_HTTP_USERNAME and TF_HTTP_PASSWORD must both be set")

    min_size = _env_int(env, "DATABASE_POOL_MIN_SIZE", 1)
    max_size = max(_env_int(env, "DATABASE_POOL_MAX_SIZE", 5), min_size)

    return Settings(
        http_username=username,
        http_password=password,
        database_url=env.get("DATABASE_URL") or None,
        http_bind_address=env.get("HTTP_BIND_ADDRESS", "0.0.0.0"),
        http_port=_env_int(env, "HTTP_PORT", 8080),
        log_level=_env_log_level(env, "LOG_LEVEL", "INFO"),
        database_pool_min_size=min_size,
        database_pool_max_size=max_size,
        database_migrate_on_startup=_env_bool(env, "DATABASE_MIGRATE_ON_STARTUP", True),
    )


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None:
        return default

    try:
        parsed = int(value)
    except ValueError:
        return default

    return parsed if parsed > 0 else default


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _env_log_level(env: Mapping[str, str], name: str, default: str) -> str:
    value = env.get(name, default).strip().upper()
    if isinstance(logging.getLevelName(value), int):
        return value
    return default
