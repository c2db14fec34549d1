from datetime import datetime, timedelta
from typing import AsyncGenerator, Generator, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport
from jose import jwt
from starlette.websockets import WebSocketState

from relay.core.config import Settings
from relay.main import create_app
from relay.schemas.user import Identity
from relay.websockets.dispatcher import BroadcastDispatcher
from relay.websockets.registry import RoomRegistry
from relay.websockets.session import Session


TEST_SECRET = "test-secret"


def make_token(
    sub: Optional[str] = "1",
    name: Optional[str] = "Alice",
    email: Optional[str] = None,
    secret: str = TEST_SECRET,
    expires_delta: timedelta = timedelta(hours=1),
) -> str:
    """테스트용 JWT 생성"""
    claims = {"exp": datetime.utcnow() + expires_delta}
    if sub is not None:
        claims["sub"] = sub
    if name is not None:
        claims["name"] = name
    if email is not None:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


class FakeWebSocket:
    """send_json 호출을 기록하는 WebSocket 대역"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []
        self.closed = None
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: Optional[str] = None):
        self.application_state = WebSocketState.DISCONNECTED
        self.closed = (code, reason)

    def types(self):
        return [frame["type"] for frame in self.sent]


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, jwt_secret=TEST_SECRET, default_room="team_chat")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """WebSocket 테스트용 클라이언트 (하나의 이벤트 루프를 공유)"""
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """테스트용 비동기 HTTP 클라이언트"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def registry() -> RoomRegistry:
    return RoomRegistry()


@pytest.fixture
def dispatcher(registry) -> BroadcastDispatcher:
    return BroadcastDispatcher(registry)


@pytest_asyncio.fixture
async def make_session():
    """시작된 Session 팩토리. 테스트 종료 시 writer 태스크를 정리합니다."""
    created = []

    def factory(user_id: str = "1", name: Optional[str] = None, fail: bool = False,
                queue_size: int = 256, start: bool = True) -> Session:
        identity = Identity(id=user_id, name=name or f"user-{user_id}")
        session = Session(FakeWebSocket(fail=fail), identity, queue_size=queue_size)
        if start:
            session.start()
        created.append(session)
        return session

    yield factory

    for session in created:
        await session.stop()
