from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class ErrorResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    service: str


class ReadyResponse(BaseModel):
    status: Literal["ready", "unavailable"]
    service: str
    backend: Literal["postgres", "memory"]
    database_ready: bool


class LockInfo(BaseModel):
    """Lock description sent by the client on lock and unlock.

    Only ``ID`` is interpreted; every other field is kept so the stored
    payload can describe the holder back to other clients.
    """

    model_config = ConfigDict(extra="allow")

    # An empty ID is malformed, as on the write path.
    ID: StrictStr = Field(min_length=1)
