"""Publisher protocol."""

from typing import Protocol, runtime_checkable

from lockstep.pubsub.message import Message


@runtime_checkable
class Publisher(Protocol):
    async def publish(self, topic: str, *messages: Message) -> None:
        """Publish messages to a topic."""
        ...

    async def close(self) -> None:
        """Release resources held by the publisher."""
        ...
