"""Wire format spoken over a room socket.

Client to server, one JSON object per frame::

    {"event": "join_room", "data": {"roomId": "...", "username": "Bob"}, "id": 1}

``id`` is optional; when present the server answers with a reply frame::

    {"id": 1, "result": {...}}
    {"id": 1, "error": {"code": "DuplicateUsername", "message": "..."}}

Server to client broadcasts::

    {"event": "user_joined", "data": {...}}
"""

import json
from typing import Annotated, Any

from pydantic import BaseModel, Field, StringConstraints, ValidationError

from lockstep.pubsub import Message
from lockstep.rooms.errors import BadRequest
from lockstep.rooms.models import MessageType, VideoState, WireModel
from lockstep.rooms.transitions import Outbound
from lockstep.router import Reply

Username = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)
]
RoomId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class Frame(BaseModel):
    """An inbound frame before its payload is interpreted."""

    event: str
    data: dict[str, Any] = Field(default_factory=dict)
    id: int | str | None = None


# Inbound operation payloads


class CreateRoom(WireModel):
    username: Username


class JoinRoom(WireModel):
    room_id: RoomId
    username: Username


class LeaveRoom(WireModel):
    room_id: RoomId
    user_id: str


class KickUser(WireModel):
    room_id: RoomId
    user_id: str


class VideoStateChange(WireModel):
    room_id: RoomId
    video_state: VideoState


class VideoUrlChange(WireModel):
    room_id: RoomId
    url: Annotated[str, StringConstraints(strip_whitespace=True, max_length=2048)]


class OutgoingChat(WireModel):
    """Chat as sent by a client. Only ``content`` is trusted."""

    user_id: str = ""
    username: str = ""
    content: Annotated[str, StringConstraints(min_length=1, max_length=2000)]
    type: MessageType = MessageType.USER


class SendMessage(WireModel):
    room_id: RoomId
    message: OutgoingChat


class UpdateUserTime(WireModel):
    room_id: RoomId
    user_id: str
    current_time: float = Field(ge=0)


class GetRoomInfo(WireModel):
    room_id: RoomId


def decode_frame(text: str | bytes) -> Frame:
    try:
        return Frame.model_validate_json(text)
    except ValidationError as e:
        msg = "Frame must be a JSON object with an 'event' name"
        raise BadRequest(msg) from e


def encode_reply(request_id: int | str | None, reply: Reply) -> str:
    frame: dict[str, Any] = {"id": request_id}
    if reply.error is not None:
        frame["error"] = {"code": reply.error.code, "message": reply.error.message}
    else:
        frame["result"] = _to_json(reply.result)
    return json.dumps(frame)


def encode_broadcast(room_id: str, outbound: Outbound) -> Message:
    """Pack an outbound event as a pub/sub message for one connection."""
    frame = {"event": outbound.event.value, "data": outbound.payload()}
    return Message(
        payload=json.dumps(frame).encode(),
        metadata={"event": outbound.event.value, "room_id": room_id},
    )


def _to_json(value: Any) -> Any:
    if isinstance(value, WireModel):
        return value.to_wire()
    if isinstance(value, dict):
        return {key: _to_json(item) for key, item in value.items()}
    return value
