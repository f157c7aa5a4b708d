"""lockstep.rooms: Replicated room state for synchronized playback."""

from lockstep.rooms.errors import (
    BadRequest,
    DuplicateUsername,
    LockstepError,
    RoomNotFound,
    UnboundConnection,
    Unauthorized,
)
from lockstep.rooms.guards import Guard, require_host, require_member
from lockstep.rooms.membership import MembershipManager
from lockstep.rooms.models import (
    ChatMessage,
    MessageType,
    Room,
    User,
    UserTime,
    VideoState,
)
from lockstep.rooms.playback import (
    DRIFT_TOLERANCE,
    PlaybackSynchronizer,
    Reconciliation,
    needs_correction,
    reconcile,
)
from lockstep.rooms.registry import RoomRegistry
from lockstep.rooms.relay import MessageRelay
from lockstep.rooms.session import Binding, SessionTable
from lockstep.rooms.transitions import Broadcast, Outbound, Scope, Transition

__all__ = [
    # models
    "ChatMessage",
    "MessageType",
    "Room",
    "User",
    "UserTime",
    "VideoState",
    # errors
    "BadRequest",
    "DuplicateUsername",
    "LockstepError",
    "RoomNotFound",
    "UnboundConnection",
    "Unauthorized",
    # components
    "MembershipManager",
    "MessageRelay",
    "PlaybackSynchronizer",
    "RoomRegistry",
    "SessionTable",
    "Binding",
    # transitions
    "Broadcast",
    "Outbound",
    "Scope",
    "Transition",
    # authority and drift
    "DRIFT_TOLERANCE",
    "Guard",
    "Reconciliation",
    "needs_correction",
    "reconcile",
    "require_host",
    "require_member",
]
