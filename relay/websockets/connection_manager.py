import asyncio
import logging
from typing import Iterable, List, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect, status

from relay.core.errors import AuthError
from relay.core.logging import clear_session_context, log_websocket_event, set_session_context
from relay.websockets import events
from relay.websockets.auth import TokenAuthenticator, authenticate
from relay.websockets.dispatcher import BroadcastDispatcher
from relay.websockets.handlers import MessageRouter
from relay.websockets.registry import RoomRegistry
from relay.websockets.session import Session, SessionState

logger = logging.getLogger(__name__)


def parse_room_list(values: Iterable[Optional[str]], default_room: str) -> List[str]:
    """
    쿼리 파라미터의 콤마 구분 채팅방 목록을 정리합니다.

    각 항목은 trim되고 빈 항목과 중복은 제거됩니다 (순서 유지).
    room/rooms 파라미터가 아예 없으면 기본 채팅방을 사용합니다.
    """
    present = [value for value in values if value is not None]
    if not present:
        return [default_room]

    rooms: List[str] = []
    for value in present:
        for name in value.split(","):
            name = name.strip()
            if name and name not in rooms:
                rooms.append(name)
    return rooms


class ConnectionAcceptor:
    """새 WebSocket 연결을 인증하고 세션을 만들어 수신 루프를 실행합니다."""

    def __init__(
        self,
        authenticator: TokenAuthenticator,
        registry: RoomRegistry,
        dispatcher: BroadcastDispatcher,
        router: MessageRouter,
        default_room: str = "team_chat",
        queue_size: int = 256,
    ):
        self.authenticator = authenticator
        self.registry = registry
        self.dispatcher = dispatcher
        self.router = router
        self.default_room = default_room
        self.queue_size = queue_size
        self.sessions: Set[Session] = set()

    async def handle(self, websocket: WebSocket):
        """연결 하나의 전체 수명 주기를 처리합니다."""
        # 종료 코드를 클라이언트에 전달하려면 먼저 accept 해야 함
        await websocket.accept()

        client = websocket.client.host if websocket.client else None
        token = websocket.query_params.get("token")

        try:
            identity = authenticate(self.authenticator, token, client)
        except AuthError as e:
            await websocket.close(code=e.close_code, reason=e.reason)
            return

        rooms = parse_room_list(
            [websocket.query_params.get("room"), websocket.query_params.get("rooms")],
            self.default_room,
        )

        session = Session(websocket, identity, queue_size=self.queue_size)
        self.sessions.add(session)
        set_session_context(session.id, identity.id)
        session.start()

        try:
            await self._open(session, rooms)
            await self._receive_loop(session)
        except WebSocketDisconnect:
            log_websocket_event(logger, "disconnected", identity.id)
        except Exception as e:
            logger.error(f"Unexpected error in WebSocket connection for user {identity.id}: {e}", exc_info=True)
            await session.close(code=status.WS_1011_INTERNAL_ERROR, reason="Internal server error")
        finally:
            # 수신 태스크가 취소되어도 정리 작업은 끝까지 실행
            await asyncio.shield(self._teardown(session))
            clear_session_context()

    async def _open(self, session: Session, rooms: List[str]):
        for room in rooms:
            await self.registry.join(room, session)

        self.dispatcher.send(session, events.connected(session.identity, session.rooms))
        log_websocket_event(logger, "connected", session.identity.id, rooms=session.rooms)

        # 채팅방에 사용자 입장 알림
        for room in session.rooms:
            await self.dispatcher.broadcast(
                room, events.presence("join", session.identity, room), exclude=session
            )

    async def _receive_loop(self, session: Session):
        websocket = session.websocket
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                log_websocket_event(logger, "disconnected", session.identity.id,
                                    close_code=message.get("code"))
                return

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue

            await self.router.route(session, raw)

    async def _teardown(self, session: Session):
        """
        연결 종료 처리

        세션을 CLOSING으로 바꾼 뒤 모든 채팅방에서 제거하고,
        남은 멤버들에게 방마다 한 번씩 presence:leave를 보냅니다.
        """
        session.state = SessionState.CLOSING
        rooms = await self.registry.leave_all(session)

        for room in rooms:
            await self.dispatcher.broadcast(
                room, events.presence("leave", session.identity, room), exclude=session
            )
            log_websocket_event(logger, "left", session.identity.id, room=room)

        await session.stop()
        self.sessions.discard(session)

    async def shutdown(self):
        """서버 종료 시 열린 연결을 모두 닫습니다."""
        for session in list(self.sessions):
            try:
                await session.close(code=status.WS_1001_GOING_AWAY, reason="Server shutting down")
            except RuntimeError as e:
                logger.warning(f"Failed to close session {session.id}: {e}")
