"""Fixtures for server tests."""

import itertools
import json
from collections import defaultdict
from typing import Any

import pytest

from lockstep.pubsub import Message
from lockstep.rooms import RoomRegistry
from lockstep.server import RoomHub
from lockstep.server.hub import CONNECTION_TOPIC_PREFIX


class RecordingPublisher:
    """Publisher that keeps every frame per connection."""

    def __init__(self) -> None:
        self.frames: dict[str, list[dict[str, Any]]] = defaultdict(list)

    async def publish(self, topic: str, *messages: Message) -> None:
        connection_id = topic.removeprefix(CONNECTION_TOPIC_PREFIX)
        for message in messages:
            self.frames[connection_id].append(json.loads(message.payload))

    async def close(self) -> None:
        pass

    def events(self, connection_id: str) -> list[str]:
        return [frame["event"] for frame in self.frames[connection_id]]

    def clear(self) -> None:
        self.frames.clear()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def registry() -> RoomRegistry:
    counter = itertools.count(1)
    return RoomRegistry(id_factory=lambda: f"id-{next(counter)}")


@pytest.fixture
def hub(registry: RoomRegistry, publisher: RecordingPublisher) -> RoomHub:
    return RoomHub(registry, publisher)
