"""Errors raised by room operations.

Every error is local to the request that caused it: it is reported back to
the caller and never closes the caller's connection.
"""


class LockstepError(Exception):
    """Base class for recoverable, caller-facing errors."""

    code = "Error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RoomNotFound(LockstepError):
    code = "RoomNotFound"

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class DuplicateUsername(LockstepError):
    code = "DuplicateUsername"

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username {username!r} is already taken in this room")


class Unauthorized(LockstepError):
    """The requester lacks the authority the operation needs."""

    code = "Unauthorized"


class UnboundConnection(LockstepError):
    """An in-room operation arrived from a connection with no session."""

    code = "UnboundConnection"

    def __init__(self, connection_id: str) -> None:
        self.connection_id = connection_id
        super().__init__(f"Connection {connection_id} has not joined a room")


class BadRequest(LockstepError):
    """The request could not be parsed or failed validation."""

    code = "BadRequest"
