"""RoomHub - the boundary between connections and room state.

Every inbound operation enters here with the id of the connection that sent
it. The hub resolves the connection's session, checks host authority for
host-only operations, runs the operation, and hands the resulting events to
the connections of the recipients while the room lock is still held.
"""

import logging

from lockstep.pubsub import Publisher
from lockstep.rooms import (
    Binding,
    MembershipManager,
    MessageRelay,
    PlaybackSynchronizer,
    Room,
    RoomRegistry,
    SessionTable,
    Transition,
    Unauthorized,
    VideoState,
    require_host,
)
from lockstep.rooms.models import ChatMessage
from lockstep.rooms.transitions import Scope
from lockstep.server.protocol import encode_broadcast

logger = logging.getLogger(__name__)

CONNECTION_TOPIC_PREFIX = "connection."


def connection_topic(connection_id: str) -> str:
    return CONNECTION_TOPIC_PREFIX + connection_id


class RoomHub:
    """Request-handling boundary for room operations.

    Outbound events are published to ``connection.<id>`` topics, one per
    recipient connection. Delivery is fire-and-forget; the publisher decides
    what happens to a connection that cannot keep up.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        publisher: Publisher,
        *,
        sessions: SessionTable | None = None,
        relay: MessageRelay | None = None,
    ) -> None:
        self.registry = registry
        self.sessions = sessions or SessionTable()
        self.relay = relay or MessageRelay(registry)
        self.membership = MembershipManager(registry, self.relay)
        self.playback = PlaybackSynchronizer(registry, self.relay)
        self._publisher = publisher

    # Session lifecycle

    async def create_room(self, connection_id: str, username: str) -> Room:
        await self._release(connection_id)
        room = self.membership.create(username)
        self.sessions.bind(connection_id, room.id, room.host_id)
        return room

    async def join_room(
        self, connection_id: str, room_id: str, username: str
    ) -> Room:
        """Join a room, then leave the one the connection was in, if any.

        A rejected join leaves the previous binding untouched. Joining the
        room the connection is already in adds the new member before the old
        one leaves, so the room survives even with a single member.
        """
        previous = self.sessions.get(connection_id)

        async def bind_and_deliver(transition: Transition) -> None:
            self.sessions.bind(connection_id, room_id, transition.joined.id)
            await self._deliver(transition)

        transition = await self.membership.join(
            room_id, username, on_commit=bind_and_deliver
        )
        room = transition.room

        if previous is not None:
            logger.info(
                "Connection %s moved from room %s to %s",
                connection_id,
                previous.room_id,
                room_id,
            )
            left = await self.membership.leave(
                previous.room_id, previous.user_id, on_commit=self._deliver
            )
            if previous.room_id == room_id and left.room is not None:
                room = left.room
        return room

    async def leave_room(
        self, connection_id: str, room_id: str, user_id: str
    ) -> None:
        """Leave on behalf of the connection's own member.

        The connection is unbound before the leave is delivered, so only the
        remaining members receive ``user_left`` and the system message. The
        leaver already knows it left from the reply.
        """
        binding = self._bound(connection_id, room_id)
        if user_id != binding.user_id:
            msg = f"Connection {connection_id} cannot leave on behalf of {user_id}"
            raise Unauthorized(msg)
        self.sessions.unbind(connection_id)
        await self.membership.leave(room_id, user_id, on_commit=self._deliver)

    async def disconnect(self, connection_id: str) -> None:
        """Translate a lost connection into a leave, at most once."""
        await self._release(connection_id)

    async def _release(self, connection_id: str) -> None:
        binding = self.sessions.unbind(connection_id)
        if binding is None:
            return
        logger.info(
            "Connection %s released from room %s", connection_id, binding.room_id
        )
        await self.membership.leave(
            binding.room_id, binding.user_id, on_commit=self._deliver
        )

    # Host-only operations

    async def kick_user(
        self, connection_id: str, room_id: str, user_id: str
    ) -> None:
        binding = self._bound(connection_id, room_id)
        await self.membership.kick(
            room_id, binding.user_id, user_id, on_commit=self._deliver
        )

    async def change_video_state(
        self, connection_id: str, room_id: str, state: VideoState
    ) -> None:
        binding = self._bound(connection_id, room_id)
        await self.playback.set_state(
            room_id,
            state,
            sender_id=binding.user_id,
            guard=require_host(binding.user_id),
            on_commit=self._deliver,
        )

    async def change_video_url(
        self, connection_id: str, room_id: str, url: str
    ) -> None:
        binding = self._bound(connection_id, room_id)
        await self.playback.set_url(
            room_id,
            url,
            guard=require_host(binding.user_id),
            on_commit=self._deliver,
        )

    # Member operations

    async def send_message(
        self, connection_id: str, room_id: str, content: str
    ) -> ChatMessage:
        binding = self._bound(connection_id, room_id)
        return await self.relay.post(
            room_id, binding.user_id, content, on_commit=self._deliver
        )

    async def update_user_time(
        self,
        connection_id: str,
        room_id: str,
        user_id: str,
        current_time: float,
    ) -> None:
        binding = self._bound(connection_id, room_id)
        if user_id != binding.user_id:
            msg = f"Connection {connection_id} cannot report time for {user_id}"
            raise Unauthorized(msg)
        await self.playback.update_user_time(
            room_id, user_id, current_time, on_commit=self._deliver
        )

    def get_room_info(self, room_id: str) -> Room | None:
        return self.registry.find(room_id)

    # Internals

    def _bound(self, connection_id: str, room_id: str) -> Binding:
        binding = self.sessions.resolve(connection_id)
        if binding.room_id != room_id:
            msg = f"Connection {connection_id} is not in room {room_id}"
            raise Unauthorized(msg)
        return binding

    async def _deliver(self, transition: Transition) -> None:
        """Publish a transition's events to their recipients, in order."""
        room_id = transition.room_id
        room = transition.room
        members = [user.id for user in room.users] if room is not None else []

        for outbound in transition.events:
            if outbound.scope is Scope.USER:
                recipients = [outbound.user_id]
            else:
                recipients = [uid for uid in members if outbound.reaches(uid)]

            for user_id in recipients:
                connection_id = self.sessions.lookup(room_id, user_id)
                if connection_id is None:
                    continue
                await self._publisher.publish(
                    connection_topic(connection_id),
                    encode_broadcast(room_id, outbound),
                )

        # A removed member's connection no longer speaks for the room.
        if transition.removed is not None:
            connection_id = self.sessions.lookup(room_id, transition.removed.id)
            if connection_id is not None:
                self.sessions.unbind(connection_id)
