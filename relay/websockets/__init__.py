"""
WebSocket 실시간 중계 모듈

주요 구성 요소:
- auth: 토큰 검증 (TokenAuthenticator)
- registry: 채팅방 멤버십 관리 (RoomRegistry)
- session: 연결별 상태와 아웃바운드 큐 (Session)
- dispatcher: 채팅방 브로드캐스트 (BroadcastDispatcher)
- handlers: 인바운드 프레임 처리 (MessageRouter)
- connection_manager: 연결 수락과 종료 처리 (ConnectionAcceptor)
"""

from .auth import TokenAuthenticator
from .registry import RoomRegistry
from .session import Session, SessionState
from .dispatcher import BroadcastDispatcher
from .handlers import MessageRouter
from .connection_manager import ConnectionAcceptor, parse_room_list

__all__ = [
    "TokenAuthenticator",
    "RoomRegistry",
    "Session",
    "SessionState",
    "BroadcastDispatcher",
    "MessageRouter",
    "ConnectionAcceptor",
    "parse_room_list"
]
