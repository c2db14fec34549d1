import asyncio
import logging
from typing import Dict, FrozenSet, List, Set

from relay.websockets.session import Session

logger = logging.getLogger(__name__)


class RoomRegistry:
    """
    채팅방 이름 → 세션 집합 매핑

    모든 멤버십 변경은 이 클래스를 통해서만 일어나며, 하나의 lock 아래에서
    registry 매핑과 session.joined_rooms를 함께 갱신합니다.

    불변식:
    - 채팅방은 멤버가 한 명 이상일 때만 매핑에 존재합니다 (빈 방은 즉시 제거).
    - room in session.joined_rooms  <=>  session in registry[room]
    """

    def __init__(self):
        self._rooms: Dict[str, Set[Session]] = {}
        self._lock = asyncio.Lock()

    async def join(self, room: str, session: Session) -> bool:
        """세션을 채팅방에 추가합니다. 새로 추가된 경우 True."""
        if not room:
            raise ValueError("Room name must be non-empty")
        async with self._lock:
            members = self._rooms.setdefault(room, set())
            if session in members:
                return False
            members.add(session)
            session.joined_rooms[room] = None
        logger.debug(f"Session {session.id} joined room {room}")
        return True

    async def leave(self, room: str, session: Session) -> bool:
        """세션을 채팅방에서 제거합니다. 멤버였던 경우 True."""
        async with self._lock:
            return self._remove(room, session)

    async def leave_all(self, session: Session) -> List[str]:
        """
        세션을 모든 채팅방에서 제거합니다. 연결 종료 시 한 번 호출됩니다.

        Returns:
            List[str]: 세션이 속해 있던 채팅방 목록 (입장 순서)
        """
        async with self._lock:
            rooms = list(session.joined_rooms)
            for room in rooms:
                self._remove(room, session)
        if rooms:
            logger.debug(f"Session {session.id} removed from rooms {rooms}")
        return rooms

    def _remove(self, room: str, session: Session) -> bool:
        session.joined_rooms.pop(room, None)
        members = self._rooms.get(room)
        if not members or session not in members:
            return False
        members.discard(session)
        if not members:
            del self._rooms[room]
        return True

    async def members_of(self, room: str) -> FrozenSet[Session]:
        """브로드캐스트용 멤버 스냅샷을 반환합니다."""
        async with self._lock:
            return frozenset(self._rooms.get(room, ()))

    def member_count(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    def rooms(self) -> List[str]:
        return list(self._rooms)

    def __contains__(self, room: str) -> bool:
        return room in self._rooms
