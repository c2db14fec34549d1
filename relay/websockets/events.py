"""
아웃바운드 프레임 생성 함수

모든 채팅방 범위 프레임은 room, timestamp(epoch ms)와 함께
user (보낸 사용자) 또는 from: {"system": true} 로 출처를 표시합니다.
"""

from typing import Any, Dict, List, Optional

from relay.schemas.user import Identity
from relay.utils.time_utils import now_ms

SYSTEM_SENDER = {"system": True}


def connected(identity: Identity, rooms: List[str]) -> Dict[str, Any]:
    return {
        "type": "connected",
        "user": identity.to_wire(),
        "rooms": rooms,
        "timestamp": now_ms(),
    }


def joined(room: str) -> Dict[str, Any]:
    return {"type": "joined", "room": room, "timestamp": now_ms()}


def left(room: str) -> Dict[str, Any]:
    return {"type": "left", "room": room, "timestamp": now_ms()}


def presence(event: str, identity: Identity, room: str) -> Dict[str, Any]:
    """event: "join" 또는 "leave" """
    return {
        "type": "presence",
        "event": event,
        "user": identity.to_wire(),
        "room": room,
        "timestamp": now_ms(),
    }


def typing(identity: Identity, room: str, is_typing: bool = True) -> Dict[str, Any]:
    return {
        "type": "typing",
        "user": identity.to_wire(),
        "room": room,
        "is_typing": is_typing,
        "timestamp": now_ms(),
    }


def chat_message(identity: Identity, room: str, text: str) -> Dict[str, Any]:
    return {
        "type": "message",
        "user": identity.to_wire(),
        "room": room,
        "text": text,
        "timestamp": now_ms(),
    }


def new_message(identity: Identity, room: str, message: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "message:new",
        "user": identity.to_wire(),
        "room": room,
        "message": message,
        "timestamp": now_ms(),
    }


def room_event(room: str, event: str, data: Any, sender: Optional[Identity] = None) -> Dict[str, Any]:
    """sender가 없으면 시스템 이벤트"""
    return {
        "type": "event",
        "room": room,
        "event": event,
        "data": data,
        "from": sender.to_wire() if sender is not None else dict(SYSTEM_SENDER),
        "timestamp": now_ms(),
    }


def pong() -> Dict[str, Any]:
    return {"type": "pong", "timestamp": now_ms()}
