"""
Out-of-band event ingress.

소켓을 가지지 않은 신뢰된 백엔드가 채팅방 멤버 전체에게 이벤트를 푸시합니다.
소켓 경로와 달리 호출자에게 성공/실패를 명시적으로 알려줍니다.
"""

import json
import logging

from pydantic import ValidationError

from relay.core.errors import IngressValidationException
from relay.schemas.emit import EmitRequest
from relay.websockets import events
from relay.websockets.dispatcher import BroadcastDispatcher

logger = logging.getLogger(__name__)


class ExternalEventIngress:
    def __init__(self, dispatcher: BroadcastDispatcher):
        self.dispatcher = dispatcher

    @staticmethod
    def parse(body: bytes) -> EmitRequest:
        """
        요청 본문을 검증합니다.

        Raises:
            IngressValidationException: JSON이 아니거나 room/event가 없는 경우
        """
        try:
            payload = json.loads(body or b"")
        except (ValueError, UnicodeDecodeError):
            raise IngressValidationException("Invalid JSON body")

        if not isinstance(payload, dict):
            raise IngressValidationException("Body must be a JSON object")

        try:
            return EmitRequest.model_validate(payload)
        except ValidationError as e:
            fields = sorted({str(error["loc"][0]) for error in e.errors() if error["loc"]})
            raise IngressValidationException(
                "room and event are required",
                details={"fields": fields},
            )

    async def emit(self, request: EmitRequest) -> int:
        """시스템 이벤트를 채팅방의 모든 멤버에게 전달합니다 (제외 없음)."""
        delivered = await self.dispatcher.broadcast(
            request.room,
            events.room_event(request.room, request.event, request.data),
        )
        logger.info(f"Emitted system event {request.event} to room {request.room} ({delivered} session(s))")
        return delivered
