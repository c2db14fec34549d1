"""
WebSocket 인바운드 프레임 스키마

클라이언트가 보내는 모든 프레임은 `type` 필드로 구분되는 JSON 객체입니다.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, StringConstraints, TypeAdapter, ValidationError

from relay.core.errors import ProtocolError

RoomName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]
EventName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class JoinFrame(BaseModel):
    """채팅방 입장 요청"""
    type: Literal["join"]
    room: RoomName


class LeaveFrame(BaseModel):
    """채팅방 퇴장 요청"""
    type: Literal["leave"]
    room: RoomName


class _TextFrame(BaseModel):
    room: Optional[RoomName] = None
    text: Optional[str] = None
    content: Optional[str] = None

    @property
    def body(self) -> str:
        return (self.text or self.content or "").strip()


class ChatFrame(_TextFrame):
    """단순 채팅 메시지 (저장하지 않고 바로 중계)"""
    type: Literal["message"]


class MessageCreateFrame(_TextFrame):
    """메시지 생성 요청 (외부 저장소에 저장 후 중계)"""
    type: Literal["message:new"]
    message_type: str = Field(default="text", description="메시지 타입: text, image, file")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="클라이언트 메타데이터")


class TypingFrame(BaseModel):
    """타이핑 상태 표시"""
    type: Literal["typing"]
    room: Optional[RoomName] = None
    is_typing: bool = True


class EventPayload(BaseModel):
    event: EventName
    data: Any = None


class EventFrame(BaseModel):
    """사용자 정의 이벤트"""
    type: Literal["event"]
    room: RoomName
    payload: EventPayload


class PingFrame(BaseModel):
    type: Literal["ping"]


InboundFrame = Annotated[
    Union[JoinFrame, LeaveFrame, ChatFrame, MessageCreateFrame, TypingFrame, EventFrame, PingFrame],
    Field(discriminator="type"),
]

_frame_adapter: TypeAdapter = TypeAdapter(InboundFrame)


def parse_frame(raw: Union[str, bytes]) -> InboundFrame:
    """
    원시 프레임을 타입별 모델로 변환합니다.

    Raises:
        ProtocolError: JSON이 아니거나, 알 수 없는 타입이거나, 필수 필드가 없는 경우
    """
    try:
        return _frame_adapter.validate_json(raw)
    except ValidationError as e:
        raise ProtocolError(f"Malformed frame: {e.error_count()} validation error(s)") from e
