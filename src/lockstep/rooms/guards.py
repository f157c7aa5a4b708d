"""Authorization checks evaluated against the room being changed.

A guard runs under the room lock, right before the change it protects, so
authority cannot migrate between the check and the write.
"""

from collections.abc import Callable

from lockstep.rooms.errors import Unauthorized
from lockstep.rooms.models import Room

Guard = Callable[[Room], None]


def require_host(user_id: str) -> Guard:
    """Allow the change only if ``user_id`` currently holds host authority."""

    def guard(room: Room) -> None:
        if room.host_id != user_id:
            msg = f"User {user_id} is not the host of room {room.id}"
            raise Unauthorized(msg)

    return guard


def require_member(user_id: str) -> Guard:
    """Allow the change only if ``user_id`` is a member of the room."""

    def guard(room: Room) -> None:
        if room.member(user_id) is None:
            msg = f"User {user_id} is not a member of room {room.id}"
            raise Unauthorized(msg)

    return guard
