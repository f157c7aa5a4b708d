"""Operation handlers: the inbound operations a room socket accepts."""

from typing import Any

from lockstep.otel import metrics_middleware
from lockstep.rooms.models import Room
from lockstep.router import Request, Router, error_replies, recoverer, timeout
from lockstep.server.config import ServerConfig
from lockstep.server.hub import RoomHub
from lockstep.server.protocol import (
    CreateRoom,
    GetRoomInfo,
    JoinRoom,
    KickUser,
    LeaveRoom,
    SendMessage,
    UpdateUserTime,
    VideoStateChange,
    VideoUrlChange,
)


def build_router(hub: RoomHub, config: ServerConfig | None = None) -> Router:
    """Create a router wired to ``hub`` with the standard middleware chain."""
    config = config or ServerConfig()
    router = Router()
    router.add_middleware(metrics_middleware(), error_replies(), recoverer())
    if config.operation_timeout is not None:
        router.add_middleware(timeout(config.operation_timeout))

    @router.handler("create_room", CreateRoom)
    async def create_room(request: Request, payload: CreateRoom) -> Room:
        return await hub.create_room(request.connection_id, payload.username)

    @router.handler("join_room", JoinRoom)
    async def join_room(request: Request, payload: JoinRoom) -> dict[str, Any]:
        room = await hub.join_room(
            request.connection_id, payload.room_id, payload.username
        )
        return {"room": room}

    @router.handler("leave_room", LeaveRoom)
    async def leave_room(request: Request, payload: LeaveRoom) -> None:
        await hub.leave_room(request.connection_id, payload.room_id, payload.user_id)

    @router.handler("kick_user", KickUser)
    async def kick_user(request: Request, payload: KickUser) -> None:
        await hub.kick_user(request.connection_id, payload.room_id, payload.user_id)

    @router.handler("video_state_change", VideoStateChange)
    async def video_state_change(request: Request, payload: VideoStateChange) -> None:
        await hub.change_video_state(
            request.connection_id, payload.room_id, payload.video_state
        )

    @router.handler("video_url_change", VideoUrlChange)
    async def video_url_change(request: Request, payload: VideoUrlChange) -> None:
        await hub.change_video_url(request.connection_id, payload.room_id, payload.url)

    @router.handler("send_message", SendMessage)
    async def send_message(request: Request, payload: SendMessage) -> None:
        await hub.send_message(
            request.connection_id, payload.room_id, payload.message.content
        )

    @router.handler("update_user_time", UpdateUserTime)
    async def update_user_time(request: Request, payload: UpdateUserTime) -> None:
        await hub.update_user_time(
            request.connection_id,
            payload.room_id,
            payload.user_id,
            payload.current_time,
        )

    @router.handler("get_room_info", GetRoomInfo)
    async def get_room_info(request: Request, payload: GetRoomInfo) -> Room | None:
        return hub.get_room_info(payload.room_id)

    return router
