from __future__ import annotations

from state_backend.domain.models import LockRecord


class StateBackendError(Exception):
    pass


class ConfigurationError(StateBackendError):
    pass


class NotFoundError(StateBackendError):
    pass


class StateNotFoundError(NotFoundError):
    def __init__(self, resource_id: str) -> None:
        super().__init__(f"no state stored for resource '{resource_id}'")
        self.resource_id = resource_id


class ConflictError(StateBackendError):
    pass


class LockConflictError(ConflictError):
    """Raised when another lock id already holds the resource.

    Carries the holder's full record so callers can report who owns it.
    """

    def __init__(self, holder: LockRecord) -> None:
        super().__init__(f"resource '{holder.resource_id}' is locked by '{holder.lock_id}'")
        self.holder = holder


class ResourceNotLockedError(ConflictError):
    def __init__(self, resource_id: str) -> None:
        super().__init__(f"resource '{resource_id}' is not locked")
        self.resource_id = resource_id


class BadInputError(StateBackendError):
    pass


class UnauthorizedError(StateBackendError):
    pass


class BackendUnavailableError(StateBackendError):
    pass


class InternalError(StateBackendError):
    pass


class SerializationError(InternalError):
    pass
