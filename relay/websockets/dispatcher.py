import logging
from typing import Any, Dict, Optional

from relay.core.errors import DeliveryError
from relay.websockets.registry import RoomRegistry
from relay.websockets.session import Session

logger = logging.getLogger(__name__)


class BroadcastDispatcher:
    """채팅방 멤버들에게 이벤트를 전달합니다 (at-most-once, best-effort)."""

    def __init__(self, registry: RoomRegistry):
        self.registry = registry

    async def broadcast(self, room: str, event: Dict[str, Any],
                        exclude: Optional[Session] = None) -> int:
        """
        채팅방의 현재 멤버 스냅샷에 이벤트를 전달합니다.

        Args:
            room: 대상 채팅방
            event: 전송할 프레임
            exclude: 제외할 세션 (보통 보낸 사람)

        Returns:
            int: 이벤트를 전달받은 세션 수
        """
        members = await self.registry.members_of(room)
        delivered = 0

        for session in members:
            if session is exclude:
                continue
            # 연결이 닫혔거나 닫히는 중인 세션은 조용히 건너뜀
            if not session.is_open:
                continue
            try:
                session.deliver(event)
                delivered += 1
            except DeliveryError as e:
                logger.warning(f"Failed to deliver {event.get('type')} to session {session.id} in room {room}: {e}")

        logger.debug(f"Broadcast {event.get('type')} to {delivered} session(s) in room {room}")
        return delivered

    def send(self, session: Session, event: Dict[str, Any]) -> bool:
        """특정 세션에게 이벤트를 전달합니다."""
        try:
            session.deliver(event)
            return True
        except DeliveryError as e:
            logger.warning(f"Failed to send {event.get('type')} to session {session.id}: {e}")
            return False
