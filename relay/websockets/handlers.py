import logging
import uuid
from typing import Optional, Union

from relay.core.errors import ExternalWriteError, ProtocolError
from relay.schemas.message import (
    ChatFrame,
    EventFrame,
    JoinFrame,
    LeaveFrame,
    MessageCreateFrame,
    TypingFrame,
    parse_frame,
)
from relay.services.message_store import MessageStoreClient
from relay.websockets import events
from relay.websockets.dispatcher import BroadcastDispatcher
from relay.websockets.registry import RoomRegistry
from relay.websockets.session import Session

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    인바운드 프레임 처리 (프로토콜 상태 머신)

    세션의 상태는 joined_rooms뿐이며, 프레임은 연결별로 도착 순서대로 처리됩니다.
    잘못된 프레임은 조용히 버려지고 보낸 사람에게 에러를 돌려주지 않습니다.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        dispatcher: BroadcastDispatcher,
        message_store: Optional[MessageStoreClient] = None,
    ):
        self.registry = registry
        self.dispatcher = dispatcher
        self.message_store = message_store

    async def route(self, session: Session, raw: Union[str, bytes]):
        """
        WebSocket으로 받은 원시 프레임을 처리합니다.

        Args:
            session: 프레임을 보낸 세션
            raw: 클라이언트가 보낸 텍스트/바이너리 프레임
        """
        try:
            frame = parse_frame(raw)
            await self.handle(session, frame)
        except ProtocolError as e:
            logger.debug(f"Dropped frame from session {session.id} (user {session.identity.id}): {e}")

    async def handle(self, session: Session, frame):
        message_type = frame.type

        if message_type == "join":
            await self._handle_join(session, frame)
        elif message_type == "leave":
            await self._handle_leave(session, frame)
        elif message_type == "message":
            await self._handle_chat_message(session, frame)
        elif message_type == "message:new":
            await self._handle_message_create(session, frame)
        elif message_type == "typing":
            await self._handle_typing_indicator(session, frame)
        elif message_type == "event":
            await self._handle_custom_event(session, frame)
        elif message_type == "ping":
            self.dispatcher.send(session, events.pong())
        else:
            raise ProtocolError(f"Unknown message type: {message_type}")

    def _target_room(self, session: Session, room: Optional[str]) -> str:
        """명시된 room 또는 세션의 현재 채팅방. 세션이 속한 방이어야 합니다."""
        target = room or session.current_room
        if not target:
            raise ProtocolError("No room context for frame")
        if target not in session.joined_rooms:
            raise ProtocolError(f"Session is not a member of room {target}")
        return target

    async def _handle_join(self, session: Session, frame: JoinFrame):
        added = await self.registry.join(frame.room, session)
        self.dispatcher.send(session, events.joined(frame.room))
        if added:
            logger.info(f"User {session.identity.id} joined room {frame.room}")
            await self.dispatcher.broadcast(
                frame.room, events.presence("join", session.identity, frame.room), exclude=session
            )

    async def _handle_leave(self, session: Session, frame: LeaveFrame):
        removed = await self.registry.leave(frame.room, session)
        self.dispatcher.send(session, events.left(frame.room))
        if removed:
            logger.info(f"User {session.identity.id} left room {frame.room}")
            await self.dispatcher.broadcast(
                frame.room, events.presence("leave", session.identity, frame.room)
            )

    async def _handle_chat_message(self, session: Session, frame: ChatFrame):
        """채팅 메시지를 처리합니다."""
        text = frame.body
        if not text:
            raise ProtocolError("Empty message content")
        room = self._target_room(session, frame.room)

        await self.dispatcher.broadcast(
            room, events.chat_message(session.identity, room, text), exclude=session
        )

    async def _handle_message_create(self, session: Session, frame: MessageCreateFrame):
        """메시지를 외부 저장소에 저장한 뒤 브로드캐스트합니다."""
        content = frame.body
        if not content:
            raise ProtocolError("Empty message content")
        room = self._target_room(session, frame.room)

        if self.message_store is not None:
            try:
                message = await self.message_store.create_message(
                    room,
                    session.identity,
                    content,
                    message_type=frame.message_type,
                    metadata=frame.metadata,
                )
            except ExternalWriteError as e:
                logger.error(f"Failed to persist message from user {session.identity.id} in room {room}: {e}")
                return
        else:
            message = {"id": uuid.uuid4().hex}

        message.setdefault("content", content)
        message.setdefault("message_type", frame.message_type)
        if frame.metadata:
            message.setdefault("metadata", frame.metadata)

        await self.dispatcher.broadcast(
            room, events.new_message(session.identity, room, message), exclude=session
        )
        logger.info(f"Message sent from user {session.identity.id} to room {room}")

    async def _handle_typing_indicator(self, session: Session, frame: TypingFrame):
        """타이핑 상태 표시를 처리합니다."""
        room = self._target_room(session, frame.room)
        await self.dispatcher.broadcast(
            room, events.typing(session.identity, room, frame.is_typing), exclude=session
        )

    async def _handle_custom_event(self, session: Session, frame: EventFrame):
        room = self._target_room(session, frame.room)
        await self.dispatcher.broadcast(
            room,
            events.room_event(room, frame.payload.event, frame.payload.data, sender=session.identity),
            exclude=session,
        )
