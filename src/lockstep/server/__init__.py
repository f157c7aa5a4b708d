"""lockstep.server: WebSocket transport for rooms."""

from lockstep.server.app import create_app, main
from lockstep.server.config import ServerConfig
from lockstep.server.handlers import build_router
from lockstep.server.hub import RoomHub, connection_topic

__all__ = [
    "RoomHub",
    "ServerConfig",
    "build_router",
    "connection_topic",
    "create_app",
    "main",
]
