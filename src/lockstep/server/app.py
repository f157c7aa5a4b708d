"""FastAPI application serving rooms over WebSocket."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

import anyio
from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from lockstep.otel import MetricsPublisher
from lockstep.pubsub import InMemoryPubSub, Message
from lockstep.rooms import LockstepError, Room, RoomRegistry
from lockstep.router import ErrorInfo, Reply, Router
from lockstep.router import Request as OperationRequest
from lockstep.server.config import ServerConfig
from lockstep.server.handlers import build_router
from lockstep.server.hub import RoomHub, connection_topic
from lockstep.server.protocol import decode_frame, encode_reply

logger = logging.getLogger(__name__)


def create_app(config: ServerConfig | None = None) -> FastAPI:
    """Build the application. Room state lives as long as its lifespan."""
    config = config or ServerConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting lockstep room server...")

        pubsub = InMemoryPubSub(config.buffer_size)
        registry = RoomRegistry()
        hub = RoomHub(registry, MetricsPublisher(pubsub))

        app.state.pubsub = pubsub
        app.state.hub = hub
        app.state.router = build_router(hub, config)

        async with pubsub:
            yield

            logger.info("Shutting down lockstep room server...")
            registry.close()

    app = FastAPI(title="lockstep", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET"],
    )

    @app.get("/health")
    async def health(request: Request) -> dict[str, object]:
        return {"status": "ok", "rooms": len(request.app.state.hub.registry)}

    @app.get("/rooms/{room_id}")
    async def get_room(room_id: str, request: Request) -> dict:
        """Full room state, for clients re-syncing after a reconnect."""
        room: Room | None = request.app.state.hub.get_room_info(room_id)
        if room is None:
            raise HTTPException(status_code=404, detail="Room not found")
        return room.to_wire()

    @app.websocket("/ws")
    async def room_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        connection = _Connection(
            websocket, uuid4().hex, websocket.app.state.router
        )
        hub: RoomHub = websocket.app.state.hub
        outbox = websocket.app.state.pubsub.subscribe(
            connection_topic(connection.id)
        )
        logger.info("Connection %s opened", connection.id)

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(connection.forward, outbox)
                await connection.serve()
                tg.cancel_scope.cancel()
        finally:
            with anyio.CancelScope(shield=True):
                await hub.disconnect(connection.id)
                await outbox.aclose()
            logger.info("Connection %s closed", connection.id)

    return app


class _Connection:
    """One accepted socket: reads requests, writes replies and broadcasts."""

    def __init__(self, websocket: WebSocket, connection_id: str, router: Router):
        self.id = connection_id
        self._websocket = websocket
        self._router = router
        self._send_lock = anyio.Lock()

    async def serve(self) -> None:
        """Handle frames until the client goes away."""
        while True:
            message = await self._websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
            await self._handle(message.get("text") or message.get("bytes") or "")

    async def _handle(self, text: str | bytes) -> None:
        try:
            frame = decode_frame(text)
        except LockstepError as e:
            error = Reply(error=ErrorInfo(e.code, e.message))
            await self._send(encode_reply(None, error))
            return

        reply = await self._router.dispatch(
            OperationRequest(self.id, frame.event, frame.data)
        )
        if frame.id is not None:
            await self._send(encode_reply(frame.id, reply))

    async def forward(self, outbox: AsyncIterator[Message]) -> None:
        """Write broadcasts addressed to this connection."""
        try:
            async for message in outbox:
                await self._send(message.payload.decode())
        except WebSocketDisconnect:
            logger.debug("Connection %s gone while sending", self.id)

    async def _send(self, text: str) -> None:
        async with self._send_lock:
            await self._websocket.send_text(text)


def main() -> None:
    import uvicorn

    config = ServerConfig.from_env()
    logging.basicConfig(level=config.log_level)
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
