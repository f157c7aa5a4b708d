"""Message Relay - stamps chat and system messages for a room."""

import logging
import time
from collections.abc import Callable
from uuid import uuid4

from lockstep.rooms.guards import require_member
from lockstep.rooms.models import ChatMessage, MessageType, Room
from lockstep.rooms.registry import CommitHook, RoomRegistry
from lockstep.rooms.transitions import Broadcast, Outbound, Scope, Transition

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


def new_message_id() -> str:
    return uuid4().hex


class MessageRelay:
    """Assigns ids and timestamps to messages and orders them per room.

    Timestamps come from the relay's clock, never from the client, and never
    go backwards within a room. Stamping happens under the room lock, so the
    order of stamps is the order members receive messages in.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        *,
        clock: Clock = wall_clock_ms,
        id_factory: Callable[[], str] = new_message_id,
    ) -> None:
        self._registry = registry
        self._clock = clock
        self._new_id = id_factory
        self._last_stamp: dict[str, int] = {}

    def stamp(
        self,
        room_id: str,
        content: str,
        *,
        user_id: str = "",
        username: str = "",
        message_type: MessageType = MessageType.USER,
    ) -> ChatMessage:
        timestamp = max(self._clock(), self._last_stamp.get(room_id, 0))
        self._last_stamp[room_id] = timestamp
        return ChatMessage(
            id=self._new_id(),
            user_id=user_id,
            username=username,
            content=content,
            timestamp=timestamp,
            type=message_type,
        )

    def system(self, room_id: str, content: str) -> Outbound:
        """Build the room-wide broadcast for a system message."""
        message = self.stamp(room_id, content, message_type=MessageType.SYSTEM)
        return Outbound(Broadcast.MESSAGE_RECEIVED, message, Scope.ROOM)

    def forget(self, room_id: str) -> None:
        """Drop per-room ordering state once the room is gone."""
        self._last_stamp.pop(room_id, None)

    async def post(
        self,
        room_id: str,
        sender_id: str,
        content: str,
        *,
        message_type: MessageType = MessageType.USER,
        on_commit: CommitHook | None = None,
    ) -> ChatMessage:
        """Stamp a message and broadcast it to every member, sender included.

        User messages must come from a current member and carry the sender's
        name from the room roster. System messages carry an empty user id.
        """

        def change(room: Room) -> Transition:
            if message_type is MessageType.SYSTEM:
                outbound = self.system(room_id, content)
            else:
                require_member(sender_id)(room)
                sender = room.member(sender_id)
                outbound = Outbound(
                    Broadcast.MESSAGE_RECEIVED,
                    self.stamp(
                        room_id,
                        content,
                        user_id=sender_id,
                        username=sender.username,
                    ),
                    Scope.ROOM,
                )
            return Transition(room_id, room, events=[outbound])

        transition = await self._registry.apply(room_id, change, on_commit)
        message = transition.events[0].data
        logger.debug("[%s] %s: %s", room_id, message.username, message.content)
        return message
