"""Membership Manager - join, leave, kick and host migration."""

import logging

from lockstep.rooms.errors import DuplicateUsername, RoomNotFound
from lockstep.rooms.guards import require_host
from lockstep.rooms.models import Room, User
from lockstep.rooms.registry import CommitHook, RoomRegistry
from lockstep.rooms.relay import MessageRelay
from lockstep.rooms.transitions import Broadcast, Outbound, Scope, Transition

logger = logging.getLogger(__name__)


class MembershipManager:
    """Applies membership changes to rooms held by a registry.

    Host authority follows join order: when the host goes away, the
    earliest-joined remaining member becomes host.
    """

    def __init__(self, registry: RoomRegistry, relay: MessageRelay) -> None:
        self._registry = registry
        self._relay = relay

    def create(self, username: str) -> Room:
        return self._registry.create(username)

    async def join(
        self,
        room_id: str,
        username: str,
        *,
        on_commit: CommitHook | None = None,
    ) -> Transition:
        """Append a new non-host member.

        Raises:
            RoomNotFound: the room does not exist.
            DuplicateUsername: a member already uses this name, ignoring case.
        """

        def change(room: Room) -> Transition:
            if room.has_username(username):
                raise DuplicateUsername(username)

            user = User(id=self._registry.new_id(), username=username)
            room.users.append(user)

            transition = Transition(room_id, room, joined=user)
            transition.emit(Broadcast.USER_JOINED, room)
            transition.events.append(
                self._relay.system(room_id, f"{username} joined the room")
            )
            return transition

        transition = await self._registry.apply(room_id, change, on_commit)
        logger.info("User %s joined room %s", username, room_id)
        return transition

    async def leave(
        self,
        room_id: str,
        user_id: str,
        *,
        on_commit: CommitHook | None = None,
    ) -> Transition:
        """Remove a member, migrating host authority if needed.

        Leaving a room that no longer exists, or that the user already left,
        changes nothing and produces no events.
        """
        try:
            return await self._registry.apply(
                room_id,
                lambda room: self._remove(room, user_id, "left the room"),
                on_commit,
            )
        except RoomNotFound:
            logger.debug("Leave for user %s: room %s already gone", user_id, room_id)
            return Transition(room_id, None)

    async def kick(
        self,
        room_id: str,
        requester_id: str,
        target_id: str,
        *,
        on_commit: CommitHook | None = None,
    ) -> Transition:
        """Remove ``target_id`` on behalf of the host.

        The target receives a single ``kicked`` notification ahead of the
        room-wide ``user_left``. A host kicking itself simply leaves.

        Raises:
            RoomNotFound: the room does not exist.
            Unauthorized: the requester is not the current host.
        """
        guard = require_host(requester_id)

        def change(room: Room) -> Transition:
            guard(room)
            if target_id == requester_id:
                return self._remove(room, target_id, "left the room")

            transition = self._remove(room, target_id, "was kicked from the room")
            if transition.removed is not None:
                transition.kicked = True
                transition.events.insert(
                    0, Outbound(Broadcast.KICKED, None, Scope.USER, target_id)
                )
            return transition

        transition = await self._registry.apply(room_id, change, on_commit)
        if transition.kicked:
            logger.info("User %s kicked from room %s", target_id, room_id)
        return transition

    def _remove(self, room: Room, user_id: str, verb: str) -> Transition:
        user = room.member(user_id)
        if user is None:
            return Transition(room.id, room)

        room.users = [member for member in room.users if member.id != user_id]
        transition = Transition(room.id, room, removed=user)

        if not room.users:
            transition.room = None
            self._relay.forget(room.id)
            logger.info("Room %s is empty after %s left", room.id, user.username)
            return transition

        if user_id == room.host_id:
            successor = room.users[0]
            successor.is_host = True
            room.host_id = successor.id
            transition.new_host = successor
            logger.info("Host of room %s passed to %s", room.id, successor.username)

        transition.emit(Broadcast.USER_LEFT, room)
        transition.events.append(
            self._relay.system(room.id, f"{user.username} {verb}")
        )
        logger.info("User %s left room %s", user.username, room.id)
        return transition
