from __future__ import annotations

from dataclasses import dataclass, field
import secrets

from fastapi.security import HTTPBasicCredentials

from state_backend.domain.errors import UnauthorizedError


@dataclass(frozen=True)
class BasicAuthGate:
    """Checks a request against the single pre-shared credential pair."""

    username: str
    password: str = field(repr=False)

    def verify(self, credentials: HTTPBasicCredentials | None) -> str:
        if credentials is None:
            raise UnauthorizedError("missing credentials")
        username_ok = secrets.compare_digest(credentials.username.encode("utf-8"), self.username.encode("utf-8"))
        password_ok = secrets.compare_digest(credentials.password.encode("utf-8"), self.password.encode("utf-8"))
        if not (username_ok and password_ok):
            raise UnauthorizedError("invalid credentials")
        return credentials.username
