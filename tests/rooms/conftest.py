"""Fixtures for room component tests."""

import itertools

import pytest

from lockstep.rooms import (
    MembershipManager,
    MessageRelay,
    PlaybackSynchronizer,
    RoomRegistry,
)

FIXED_CLOCK_MS = 1_700_000_000_000


class StepClock:
    """Clock whose readings are set by the test."""

    def __init__(self, now: int = FIXED_CLOCK_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def registry() -> RoomRegistry:
    counter = itertools.count(1)
    return RoomRegistry(id_factory=lambda: f"id-{next(counter)}")


@pytest.fixture
def relay(registry: RoomRegistry, clock: StepClock) -> MessageRelay:
    return MessageRelay(registry, clock=clock)


@pytest.fixture
def membership(registry: RoomRegistry, relay: MessageRelay) -> MembershipManager:
    return MembershipManager(registry, relay)


@pytest.fixture
def playback(registry: RoomRegistry, relay: MessageRelay) -> PlaybackSynchronizer:
    return PlaybackSynchronizer(registry, relay)
