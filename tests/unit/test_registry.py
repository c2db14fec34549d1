import asyncio
import random

import pytest

from relay.websockets.registry import RoomRegistry


def assert_consistent(registry: RoomRegistry, sessions):
    """registry와 session.joined_rooms의 양방향 일관성 검사"""
    for room in registry.rooms():
        assert registry.member_count(room) > 0
    for session in sessions:
        for room in session.joined_rooms:
            assert room in registry
    for room in registry.rooms():
        members = registry._rooms[room]
        for session in members:
            assert room in session.joined_rooms


class TestRoomRegistry:
    """채팅방 멤버십 테스트"""

    @pytest.mark.asyncio
    async def test_join_creates_room(self, registry, make_session):
        session = make_session()

        added = await registry.join("lobby", session)

        assert added is True
        assert "lobby" in registry
        assert session in await registry.members_of("lobby")
        assert session.rooms == ["lobby"]

    @pytest.mark.asyncio
    async def test_join_is_idempotent(self, registry, make_session):
        session = make_session()

        await registry.join("lobby", session)
        added = await registry.join("lobby", session)

        assert added is False
        assert registry.member_count("lobby") == 1

    @pytest.mark.asyncio
    async def test_empty_room_name_rejected(self, registry, make_session):
        with pytest.raises(ValueError):
            await registry.join("", make_session())

    @pytest.mark.asyncio
    async def test_room_names_are_case_sensitive(self, registry, make_session):
        session = make_session()
        await registry.join("Lobby", session)

        assert "lobby" not in registry
        assert await registry.members_of("lobby") == frozenset()

    @pytest.mark.asyncio
    async def test_leave_prunes_empty_room(self, registry, make_session):
        session = make_session()
        await registry.join("lobby", session)

        removed = await registry.leave("lobby", session)

        assert removed is True
        assert "lobby" not in registry
        assert registry.rooms() == []
        assert session.rooms == []

    @pytest.mark.asyncio
    async def test_leave_is_idempotent(self, registry, make_session):
        session = make_session()

        assert await registry.leave("lobby", session) is False
        await registry.join("lobby", session)
        assert await registry.leave("lobby", session) is True
        assert await registry.leave("lobby", session) is False

    @pytest.mark.asyncio
    async def test_same_user_multiple_sessions(self, registry, make_session):
        """같은 사용자의 두 탭은 별개의 멤버"""
        tab_1 = make_session("1")
        tab_2 = make_session("1")

        await registry.join("lobby", tab_1)
        await registry.join("lobby", tab_2)

        assert registry.member_count("lobby") == 2

    @pytest.mark.asyncio
    async def test_leave_all(self, registry, make_session):
        session = make_session()
        other = make_session("2")
        await registry.join("a", session)
        await registry.join("b", session)
        await registry.join("b", other)

        rooms = await registry.leave_all(session)

        assert rooms == ["a", "b"]
        assert "a" not in registry
        assert await registry.members_of("b") == frozenset({other})
        assert session.joined_rooms == {}
        assert await registry.leave_all(session) == []

    @pytest.mark.asyncio
    async def test_members_of_returns_snapshot(self, registry, make_session):
        first = make_session("1")
        second = make_session("2")
        await registry.join("lobby", first)
        await registry.join("lobby", second)

        snapshot = await registry.members_of("lobby")
        await registry.leave("lobby", second)

        assert snapshot == frozenset({first, second})
        assert await registry.members_of("lobby") == frozenset({first})

    @pytest.mark.asyncio
    async def test_session_without_rooms_leaves_no_entry(self, registry, make_session):
        session = make_session()

        assert await registry.leave_all(session) == []
        assert registry.rooms() == []

    @pytest.mark.asyncio
    async def test_random_operations_keep_membership_consistent(self, registry, make_session):
        rng = random.Random(1234)
        sessions = [make_session(str(i), start=False) for i in range(5)]
        rooms = ["a", "b", "c", "d"]

        for _ in range(300):
            session = rng.choice(sessions)
            operation = rng.random()
            if operation < 0.5:
                await registry.join(rng.choice(rooms), session)
            elif operation < 0.9:
                await registry.leave(rng.choice(rooms), session)
            else:
                await registry.leave_all(session)
            assert_consistent(registry, sessions)

    @pytest.mark.asyncio
    async def test_concurrent_join_and_leave(self, registry, make_session):
        sessions = [make_session(str(i), start=False) for i in range(20)]

        await asyncio.gather(*(registry.join("lobby", s) for s in sessions))
        assert registry.member_count("lobby") == 20

        await asyncio.gather(*(registry.leave_all(s) for s in sessions))
        assert "lobby" not in registry
        assert_consistent(registry, sessions)
