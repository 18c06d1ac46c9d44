from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from state_backend.api.auth import BasicAuthGate
from state_backend.domain.resources import ResourceRepository


def _always_ready() -> bool:
    return True


@dataclass(frozen=True)
class ApiDeps:
    resources: ResourceRepository
    auth: BasicAuthGate
    backend: Literal["postgres", "memory"] = "memory"
    is_ready: Callable[[], bool] = _always_ready
