"""In-memory pub/sub backed by anyio memory object streams."""

import logging
from collections.abc import AsyncGenerator
from types import TracebackType

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from lockstep.pubsub.message import Message

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 100


class InMemoryPubSub:
    """Publisher and subscriber living in the same process.

    Every subscription gets its own bounded buffer. Publishing never waits
    for a subscriber: when a buffer is full the message is dropped for that
    subscriber only and a warning is logged.

    Example:
        async with InMemoryPubSub() as pubsub:
            messages = pubsub.subscribe("connection.abc")
            await pubsub.publish("connection.abc", Message(payload=b"{}"))
            async for msg in messages:
                ...
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self._buffer_size = buffer_size
        self._subscribers: dict[str, list[MemoryObjectSendStream[Message]]] = {}
        self._closed = False

    def subscribe(self, topic: str) -> AsyncGenerator[Message, None]:
        """Register a subscription and return an iterator over its messages."""
        if self._closed:
            msg = "PubSub is closed"
            raise RuntimeError(msg)

        send, receive = anyio.create_memory_object_stream[Message](self._buffer_size)
        self._subscribers.setdefault(topic, []).append(send)
        return self._iterate(topic, send, receive)

    async def _iterate(
        self,
        topic: str,
        send: MemoryObjectSendStream[Message],
        receive: MemoryObjectReceiveStream[Message],
    ) -> AsyncGenerator[Message, None]:
        try:
            async with receive:
                async for message in receive:
                    yield message
        finally:
            self._discard(topic, send)
            send.close()

    async def publish(self, topic: str, *messages: Message) -> None:
        """Deliver messages to every current subscriber of a topic.

        Publishing to a topic without subscribers is a no-op.
        """
        if self._closed:
            msg = "PubSub is closed"
            raise RuntimeError(msg)

        for send in list(self._subscribers.get(topic, ())):
            for message in messages:
                try:
                    send.send_nowait(message)
                except anyio.WouldBlock:
                    logger.warning(
                        "Dropping message %s on %s: subscriber buffer full",
                        message.uuid,
                        topic,
                    )
                except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                    self._discard(topic, send)
                    break

    def _discard(self, topic: str, send: MemoryObjectSendStream[Message]) -> None:
        streams = self._subscribers.get(topic)
        if not streams:
            return
        if send in streams:
            streams.remove(send)
        if not streams:
            del self._subscribers[topic]

    async def close(self) -> None:
        """Close the pub/sub and end every active subscription."""
        if self._closed:
            return
        self._closed = True
        for streams in self._subscribers.values():
            for send in streams:
                send.close()
        self._subscribers.clear()

    async def __aenter__(self) -> "InMemoryPubSub":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
