"""Tests for RoomRegistry."""

import anyio
import pytest

from lockstep.rooms import Room, RoomNotFound, RoomRegistry, Transition, User

pytestmark = pytest.mark.anyio

TIMEOUT_SECONDS = 2
CONCURRENT_JOINS = 20


def append_user(user_id: str):
    def change(room: Room) -> Transition:
        room.users.append(User(id=user_id, username=user_id))
        return Transition(room.id, room)

    return change


class TestCreate:
    def test_creator_is_sole_host(self, registry: RoomRegistry) -> None:
        room = registry.create("Alice")

        assert [u.username for u in room.users] == ["Alice"]
        assert room.users[0].is_host
        assert room.host_id == room.users[0].id
        assert room.id != room.host_id

    def test_room_starts_empty_and_paused(self, registry: RoomRegistry) -> None:
        room = registry.create("Alice")

        assert room.video_url == ""
        assert room.is_playing is False
        assert room.current_time == 0
        assert room.duration is None

    def test_default_ids_are_unique(self) -> None:
        registry = RoomRegistry()
        first = registry.create("Alice")
        second = registry.create("Alice")

        assert first.id != second.id
        assert first.host_id != second.host_id


class TestGet:
    def test_missing_room_raises(self, registry: RoomRegistry) -> None:
        with pytest.raises(RoomNotFound):
            registry.get("nope")

    def test_find_missing_returns_none(self, registry: RoomRegistry) -> None:
        assert registry.find("nope") is None

    def test_returned_room_is_a_copy(self, registry: RoomRegistry) -> None:
        room = registry.create("Alice")
        room.users.clear()
        room.video_url = "http://example/video"

        stored = registry.get(room.id)
        assert len(stored.users) == 1
        assert stored.video_url == ""


class TestApply:
    async def test_change_is_stored(self, registry: RoomRegistry) -> None:
        room = registry.create("Alice")

        await registry.apply(room.id, append_user("bob"))

        assert [u.id for u in registry.get(room.id).users] == [room.host_id, "bob"]

    async def test_failed_change_stores_nothing(self, registry: RoomRegistry) -> None:
        room = registry.create("Alice")
        committed: list[Transition] = []

        def failing(current: Room) -> Transition:
            current.users.append(User(id="bob", username="Bob"))
            raise ValueError("boom")

        async def on_commit(transition: Transition) -> None:
            committed.append(transition)

        with pytest.raises(ValueError, match="boom"):
            await registry.apply(room.id, failing, on_commit)

        assert len(registry.get(room.id).users) == 1
        assert committed == []

    async def test_empty_room_is_deleted(self, registry: RoomRegistry) -> None:
        room = registry.create("Alice")

        def empty(current: Room) -> Transition:
            current.users.clear()
            return Transition(current.id, current)

        transition = await registry.apply(room.id, empty)

        assert transition.deleted
        assert room.id not in registry
        assert len(registry) == 0

    async def test_missing_room_raises(self, registry: RoomRegistry) -> None:
        with pytest.raises(RoomNotFound):
            await registry.apply("nope", append_user("bob"))

    async def test_host_invariant_enforced(self, registry: RoomRegistry) -> None:
        room = registry.create("Alice")

        def two_hosts(current: Room) -> Transition:
            current.users.append(User(id="bob", username="Bob", is_host=True))
            return Transition(current.id, current)

        with pytest.raises(RuntimeError, match="exactly one host"):
            await registry.apply(room.id, two_hosts)

        assert len(registry.get(room.id).users) == 1

    async def test_concurrent_changes_are_serialized(
        self, registry: RoomRegistry
    ) -> None:
        room = registry.create("Alice")

        async def slow_commit(transition: Transition) -> None:
            await anyio.sleep(0)

        async def join(n: int) -> None:
            await registry.apply(room.id, append_user(f"user-{n}"), slow_commit)

        with anyio.fail_after(TIMEOUT_SECONDS):
            async with anyio.create_task_group() as tg:
                for n in range(CONCURRENT_JOINS):
                    tg.start_soon(join, n)

        assert len(registry.get(room.id).users) == CONCURRENT_JOINS + 1

    async def test_commit_hooks_run_in_arrival_order(
        self, registry: RoomRegistry
    ) -> None:
        room = registry.create("Alice")
        order: list[str] = []

        async def record(transition: Transition) -> None:
            await anyio.sleep(0.01)
            order.append(transition.room.users[-1].id)

        with anyio.fail_after(TIMEOUT_SECONDS):
            async with anyio.create_task_group() as tg:
                tg.start_soon(registry.apply, room.id, append_user("first"), record)
                await anyio.sleep(0)
                tg.start_soon(registry.apply, room.id, append_user("second"), record)

        assert order == ["first", "second"]

    async def test_waiter_sees_room_deleted_meanwhile(
        self, registry: RoomRegistry
    ) -> None:
        room = registry.create("Alice")
        results: list[str] = []

        def empty(current: Room) -> Transition:
            current.users.clear()
            return Transition(current.id, current)

        async def hold(transition: Transition) -> None:
            await anyio.sleep(0.01)

        async def late_join() -> None:
            try:
                await registry.apply(room.id, append_user("bob"))
            except RoomNotFound:
                results.append("not-found")

        with anyio.fail_after(TIMEOUT_SECONDS):
            async with anyio.create_task_group() as tg:
                tg.start_soon(registry.apply, room.id, empty, hold)
                await anyio.sleep(0)
                tg.start_soon(late_join)

        assert results == ["not-found"]
        assert room.id not in registry


class TestClose:
    def test_close_drops_rooms(self, registry: RoomRegistry) -> None:
        registry.create("Alice")
        registry.create("Bob")

        registry.close()

        assert len(registry) == 0
