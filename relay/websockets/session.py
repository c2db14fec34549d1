import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from relay.core.errors import DeliveryError
from relay.schemas.user import Identity

logger = logging.getLogger(__name__)

FLUSH_TIMEOUT_SECONDS = 1.0


class SessionState(str, Enum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class Session:
    """
    하나의 WebSocket 연결에 대한 서버 측 상태

    - identity: 연결 시 검증된 사용자 정보 (불변)
    - joined_rooms: 입장한 채팅방 (입장 순서 유지). RoomRegistry만 수정합니다.
    - 아웃바운드 프레임은 크기 제한 큐에 쌓이고 writer 태스크가 순서대로 전송합니다.
      느린 수신자가 다른 수신자로의 전송을 막지 않도록 큐가 가득 차면 전달을 건너뜁니다.
    """

    def __init__(self, websocket: WebSocket, identity: Identity, queue_size: int = 256):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.identity = identity
        self.joined_rooms: Dict[str, None] = {}
        self.state = SessionState.OPEN
        self._outbox: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._writer: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"<Session {self.id} user={self.identity.id} state={self.state.value}>"

    @property
    def rooms(self) -> List[str]:
        return list(self.joined_rooms)

    @property
    def current_room(self) -> Optional[str]:
        """가장 최근에 입장한 채팅방"""
        return next(reversed(self.joined_rooms), None)

    @property
    def is_open(self) -> bool:
        if self.state is not SessionState.OPEN:
            return False
        return (self.websocket.client_state == WebSocketState.CONNECTED
                and self.websocket.application_state == WebSocketState.CONNECTED)

    def start(self):
        """아웃바운드 writer 태스크를 시작합니다."""
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain(), name=f"session-writer-{self.id}")

    def deliver(self, event: Dict[str, Any]):
        """
        이벤트를 아웃바운드 큐에 넣습니다. 기다리지 않습니다.

        Raises:
            DeliveryError: 세션이 열려 있지 않거나 큐가 가득 찬 경우
        """
        if not self.is_open:
            raise DeliveryError(f"Session {self.id} is not open")
        try:
            self._outbox.put_nowait(event)
        except asyncio.QueueFull as e:
            raise DeliveryError(f"Outbound queue full for session {self.id}") from e

    async def _drain(self):
        while True:
            event = await self._outbox.get()
            try:
                await self.websocket.send_json(event)
            except Exception as e:
                logger.warning(f"Send failed for session {self.id} (user {self.identity.id}): {e}")
                self.state = SessionState.CLOSING
                self._discard_pending()
                return
            finally:
                self._outbox.task_done()

    def _discard_pending(self):
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()

    async def flush(self, timeout: float = FLUSH_TIMEOUT_SECONDS) -> bool:
        """큐에 남은 프레임이 전송될 때까지 기다립니다."""
        if self._writer is None or self._writer.done():
            return self._outbox.empty()
        try:
            await asyncio.wait_for(self._outbox.join(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def close(self, code: int = 1000, reason: Optional[str] = None):
        """서버 측에서 연결을 종료합니다."""
        self.state = SessionState.CLOSING
        if (self.websocket.application_state == WebSocketState.CONNECTED
                and self.websocket.client_state == WebSocketState.CONNECTED):
            await self.websocket.close(code=code, reason=reason)

    async def stop(self):
        """writer 태스크를 정리하고 세션을 CLOSED로 전환합니다."""
        if self._writer is not None:
            if self.websocket.client_state == WebSocketState.CONNECTED:
                await self.flush()
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            self._writer = None
        self.state = SessionState.CLOSED
