"""Room Registry - the single owner of every live room."""

import logging
from collections.abc import Awaitable, Callable
from uuid import uuid4

import anyio

from lockstep.rooms.errors import RoomNotFound
from lockstep.rooms.models import Room, User
from lockstep.rooms.transitions import Transition

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]
Change = Callable[[Room], Transition]
CommitHook = Callable[[Transition], Awaitable[None]]


def new_id() -> str:
    return str(uuid4())


class RoomRegistry:
    """Keyed store of rooms with one lock per room.

    Changes go through :meth:`apply`, which serializes operations on the same
    room in arrival order. Operations on different rooms do not contend.
    Every room handed out is a deep copy; the stored instance never leaves
    the registry.
    """

    def __init__(self, id_factory: IdFactory = new_id) -> None:
        self._new_id = id_factory
        self._rooms: dict[str, Room] = {}
        self._locks: dict[str, anyio.Lock] = {}

    def new_id(self) -> str:
        """Allocate a fresh opaque token."""
        return self._new_id()

    def create(self, username: str) -> Room:
        """Create a room whose only member is its host."""
        host = User(id=self._new_id(), username=username, is_host=True)
        room = Room(id=self._new_id(), host_id=host.id, users=[host])
        self._rooms[room.id] = room
        self._locks[room.id] = anyio.Lock()
        logger.info("Room %s created by %s", room.id, username)
        return room.model_copy(deep=True)

    def get(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room.model_copy(deep=True)

    def find(self, room_id: str) -> Room | None:
        room = self._rooms.get(room_id)
        return room.model_copy(deep=True) if room is not None else None

    def delete(self, room_id: str) -> None:
        self._rooms.pop(room_id, None)
        self._locks.pop(room_id, None)
        logger.info("Room %s deleted", room_id)

    async def apply(
        self,
        room_id: str,
        change: Change,
        on_commit: CommitHook | None = None,
    ) -> Transition:
        """Run ``change`` against a room while holding its lock.

        The resulting room replaces the stored one; an empty or missing
        result deletes the room. ``on_commit`` is awaited before the lock is
        released, so whatever it sends is ordered with the room's changes.
        If ``change`` raises, nothing is stored and ``on_commit`` is skipped.
        """
        lock = self._locks.get(room_id)
        if lock is None:
            raise RoomNotFound(room_id)

        async with lock:
            current = self._rooms.get(room_id)
            if current is None:
                # Deleted while this operation was waiting for the lock.
                raise RoomNotFound(room_id)

            transition = change(current.model_copy(deep=True))
            self._commit(transition)
            if on_commit is not None:
                await on_commit(transition)

        return transition

    def _commit(self, transition: Transition) -> None:
        room = transition.room
        if room is not None and not room.users:
            transition.room = room = None

        if room is None:
            self.delete(transition.room_id)
            return

        _check_host(room)
        self._rooms[transition.room_id] = room.model_copy(deep=True)

    def close(self) -> None:
        """Drop every room."""
        if self._rooms:
            logger.info("Discarding %d room(s)", len(self._rooms))
        self._rooms.clear()
        self._locks.clear()

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)


def _check_host(room: Room) -> None:
    hosts = [user.id for user in room.users if user.is_host]
    if hosts != [room.host_id]:
        msg = f"Room {room.id} must have exactly one host matching hostId"
        raise RuntimeError(msg)
