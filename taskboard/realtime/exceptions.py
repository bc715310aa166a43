from __future__ import annotations

import enum


class RealtimeError(Exception):
    """Base class for realtime core errors."""

    default_reason = "error"

    def __init__(self, message: str = "", *, reason: str | None = None):
        self.reason = reason or self.default_reason
        self.message = message or self.reason
        super().__init__(self.message)


class AuthError(RealtimeError):
    """Missing, malformed, expired or foreign-signed credential."""

    default_reason = "unauthorized"


class UnavailableError(RealtimeError):
    """The realtime hub or Pusher is not set up in this process."""

    default_reason = "unavailable"


class RegistryError(RealtimeError):
    """Protocol violation against the connection registry."""

    default_reason = "registry"


class RejectionReason(str, enum.Enum):
    INVALID_ID = "invalid_id"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


class RoomRejectedError(RealtimeError):
    """A join or channel grant was refused by the authorization gate."""

    rejection: RejectionReason

    def __init__(self, message: str = ""):
        super().__init__(message, reason=self.rejection.value)

    def as_payload(self, board_id: str | None) -> dict[str, str | None]:
        return {"boardId": board_id, "reason": self.reason, "message": self.message}


class InvalidIdError(RoomRejectedError):
    rejection = RejectionReason.INVALID_ID


class NotFoundError(RoomRejectedError):
    rejection = RejectionReason.NOT_FOUND


class ForbiddenError(RoomRejectedError):
    rejection = RejectionReason.FORBIDDEN
