from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StateRecord:
    id: str
    state: str
    updated_at: datetime | None = None


@dataclass(frozen=True)
class LockRecord:
    lock_id: str
    resource_id: str
    # Stored and returned verbatim; never interpreted by the stores.
    payload: str
    updated_at: datetime | None = None
