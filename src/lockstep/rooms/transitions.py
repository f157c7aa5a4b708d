"""Results of room operations.

A room operation is a pure function from the current room to a
:class:`Transition`: the new room (or ``None`` once the room is gone) plus
the outbound events describing the change. Sending those events is the
transport's job.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from lockstep.rooms.models import Room, User, WireModel


class Broadcast(str, Enum):
    """Names of the events sent to clients."""

    USER_JOINED = "user_joined"
    USER_LEFT = "user_left"
    KICKED = "kicked"
    VIDEO_STATE_UPDATED = "video_state_updated"
    VIDEO_URL_UPDATED = "video_url_updated"
    MESSAGE_RECEIVED = "message_received"
    USER_TIME_UPDATE = "user_time_update"


class Scope(str, Enum):
    """Who receives an outbound event."""

    ROOM = "room"
    """Every current member."""

    ROOM_EXCEPT = "room_except"
    """Every current member except ``Outbound.user_id``."""

    USER = "user"
    """Only ``Outbound.user_id``, whether or not it is still a member."""


@dataclass(frozen=True)
class Outbound:
    event: Broadcast
    data: Any = None
    scope: Scope = Scope.ROOM
    user_id: str | None = None

    def payload(self) -> Any:
        if isinstance(self.data, WireModel):
            return self.data.to_wire()
        return self.data

    def reaches(self, user_id: str) -> bool:
        """Whether a current member with this id is a recipient."""
        if self.scope is Scope.ROOM:
            return True
        if self.scope is Scope.ROOM_EXCEPT:
            return user_id != self.user_id
        return user_id == self.user_id


@dataclass
class Transition:
    """New state of one room and the events that announce it."""

    room_id: str
    room: Room | None
    events: list[Outbound] = field(default_factory=list)
    joined: User | None = None
    removed: User | None = None
    kicked: bool = False
    new_host: User | None = None

    @property
    def deleted(self) -> bool:
        return self.room is None

    def emit(
        self,
        event: Broadcast,
        data: Any = None,
        scope: Scope = Scope.ROOM,
        user_id: str | None = None,
    ) -> None:
        self.events.append(Outbound(event, data, scope, user_id))
