from typing import Any

from pydantic import BaseModel, Field

from relay.schemas.message import EventName, RoomName


class EmitRequest(BaseModel):
    """외부 백엔드의 채팅방 이벤트 푸시 요청"""
    room: RoomName = Field(..., description="대상 채팅방")
    event: EventName = Field(..., description="이벤트 이름")
    data: Any = Field(None, description="이벤트 데이터")


class EmitResponse(BaseModel):
    success: bool = True
    delivered: int = Field(..., description="이벤트를 전달받은 세션 수")
