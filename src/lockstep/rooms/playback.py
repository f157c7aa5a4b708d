"""Playback Synchronizer - authoritative video state of a room.

The host is the only writer of playback state. This module does not decide
who the host is; callers pass a guard (see :mod:`lockstep.rooms.guards`)
that is evaluated under the room lock.

Members mirror the host with a drift tolerance: an authoritative position is
applied only when it differs from the local one by more than
:data:`DRIFT_TOLERANCE` seconds.
"""

import logging
from dataclasses import dataclass

from lockstep.rooms.guards import Guard, require_member
from lockstep.rooms.models import Room, UserTime, VideoState
from lockstep.rooms.registry import CommitHook, RoomRegistry
from lockstep.rooms.relay import MessageRelay
from lockstep.rooms.transitions import Broadcast, Scope, Transition

logger = logging.getLogger(__name__)

DRIFT_TOLERANCE = 1.0
"""Seconds of divergence a member tolerates before seeking."""


def needs_correction(local_time: float, authoritative_time: float) -> bool:
    return abs(local_time - authoritative_time) > DRIFT_TOLERANCE


@dataclass(frozen=True)
class Reconciliation:
    """What a member should do with its player after an update."""

    seek_to: float | None
    is_playing: bool
    playback_speed: float


def reconcile(local_time: float, state: VideoState) -> Reconciliation:
    """Compute the correction a member applies for an authoritative state.

    Play/pause and speed always follow the host. Position follows only
    outside the drift tolerance, so network jitter does not cause stutter.
    """
    seek_to = None
    if needs_correction(local_time, state.current_time):
        seek_to = state.current_time
    return Reconciliation(
        seek_to=seek_to,
        is_playing=state.is_playing,
        playback_speed=state.playback_speed,
    )


class PlaybackSynchronizer:
    def __init__(self, registry: RoomRegistry, relay: MessageRelay) -> None:
        self._registry = registry
        self._relay = relay

    async def set_state(
        self,
        room_id: str,
        state: VideoState,
        *,
        sender_id: str | None = None,
        guard: Guard | None = None,
        on_commit: CommitHook | None = None,
    ) -> Transition:
        """Store play/pause and position, then relay the full state.

        The broadcast skips ``sender_id``, which already shows this state.
        """

        def change(room: Room) -> Transition:
            if guard is not None:
                guard(room)
            room.is_playing = state.is_playing
            room.current_time = state.current_time

            transition = Transition(room_id, room)
            if sender_id is None:
                transition.emit(Broadcast.VIDEO_STATE_UPDATED, state)
            else:
                transition.emit(
                    Broadcast.VIDEO_STATE_UPDATED, state, Scope.ROOM_EXCEPT, sender_id
                )
            return transition

        transition = await self._registry.apply(room_id, change, on_commit)
        logger.debug(
            "Room %s playback: playing=%s at %.3fs",
            room_id,
            state.is_playing,
            state.current_time,
        )
        return transition

    async def set_url(
        self,
        room_id: str,
        url: str,
        *,
        guard: Guard | None = None,
        on_commit: CommitHook | None = None,
    ) -> Transition:
        """Load a new video. Playback always restarts paused at zero."""

        def change(room: Room) -> Transition:
            if guard is not None:
                guard(room)
            room.video_url = url
            room.current_time = 0.0
            room.is_playing = False
            room.duration = None

            transition = Transition(room_id, room)
            transition.emit(Broadcast.VIDEO_URL_UPDATED, url)
            notice = f"Video changed to {url}" if url else "Video removed"
            transition.events.append(self._relay.system(room_id, notice))
            return transition

        transition = await self._registry.apply(room_id, change, on_commit)
        logger.info("Room %s video set to %r", room_id, url)
        return transition

    async def update_user_time(
        self,
        room_id: str,
        user_id: str,
        current_time: float,
        *,
        on_commit: CommitHook | None = None,
    ) -> Transition:
        """Record a member's own position for display to others.

        Never touches the room's authoritative playback state.
        """
        guard = require_member(user_id)

        def change(room: Room) -> Transition:
            guard(room)
            room.member(user_id).last_known_time = current_time

            transition = Transition(room_id, room)
            transition.emit(
                Broadcast.USER_TIME_UPDATE,
                UserTime(room_id=room_id, user_id=user_id, current_time=current_time),
            )
            return transition

        return await self._registry.apply(room_id, change, on_commit)
