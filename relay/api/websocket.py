import logging

from fastapi import APIRouter, Depends, WebSocket

from relay.api.dependencies import get_registry
from relay.websockets.registry import RoomRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    채팅 WebSocket 연결 엔드포인트

    Query:
        token: JWT (필수)
        room / rooms: 콤마로 구분된 초기 채팅방 목록 (없으면 기본 채팅방)
    """
    await websocket.app.state.acceptor.handle(websocket)


@router.get("/rooms/{room}/status")
async def get_room_status(room: str, registry: RoomRegistry = Depends(get_registry)):
    """채팅방의 현재 연결 수를 조회합니다."""
    online_count = registry.member_count(room)
    return {
        "room": room,
        "online_count": online_count,
        "is_active": online_count > 0,
    }
