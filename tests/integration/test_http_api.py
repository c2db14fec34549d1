import pytest
from fastapi import status

from relay.core.config import Settings
from relay.main import create_app
from conftest import TEST_SECRET, make_token


class TestEmitEndpoint:
    """POST /emit 테스트"""

    def test_emit_reaches_all_members(self, client):
        with client.websocket_connect(f"/ws?token={make_token(sub='a')}&rooms=lobby") as ws_a:
            ws_a.receive_json()
            with client.websocket_connect(f"/ws?token={make_token(sub='b')}&rooms=lobby") as ws_b:
                ws_b.receive_json()
                ws_a.receive_json()

                response = client.post("/emit", json={
                    "room": "lobby",
                    "event": "announcement",
                    "data": {"text": "hi"},
                })

                assert response.status_code == status.HTTP_200_OK
                assert response.json() == {"success": True, "delivered": 2}
                for ws in (ws_a, ws_b):
                    event = ws.receive_json()
                    assert event["type"] == "event"
                    assert event["room"] == "lobby"
                    assert event["event"] == "announcement"
                    assert event["data"] == {"text": "hi"}
                    assert event["from"] == {"system": True}

    @pytest.mark.asyncio
    async def test_emit_to_absent_room(self, async_client):
        response = await async_client.post("/emit", json={"room": "ghost", "event": "announcement"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["delivered"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"event": "announcement"},
        {"room": "lobby"},
        {"room": "lobby", "event": ""},
        {"room": "lobby", "event": "   "},
    ])
    async def test_emit_missing_fields(self, async_client, body):
        response = await async_client.post("/emit", json=body)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "room and event are required"

    @pytest.mark.asyncio
    async def test_emit_unparsable_body(self, async_client):
        response = await async_client.post(
            "/emit", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "invalid_emit_request"

    @pytest.mark.asyncio
    async def test_emit_key_required_when_configured(self):
        from httpx import ASGITransport, AsyncClient

        app = create_app(Settings(_env_file=None, jwt_secret=TEST_SECRET, emit_api_key="backend-key"))
        body = {"room": "lobby", "event": "announcement"}

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
            rejected = await http_client.post("/emit", json=body)
            accepted = await http_client.post("/emit", json=body, headers={"X-Emit-Key": "backend-key"})

        assert rejected.status_code == status.HTTP_401_UNAUTHORIZED
        assert rejected.json()["error"] == "authentication_error"
        assert rejected.json()["status_code"] == status.HTTP_401_UNAUTHORIZED
        assert accepted.status_code == status.HTTP_200_OK


class TestHealthAndStatus:

    @pytest.mark.asyncio
    async def test_root(self, async_client):
        response = await async_client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert "running" in response.text

    @pytest.mark.asyncio
    async def test_liveness(self, async_client):
        response = await async_client.get("/health/live")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "alive"
        assert data["connections"] == 0

    def test_room_status(self, client):
        assert client.get("/rooms/lobby/status").json()["online_count"] == 0

        with client.websocket_connect(f"/ws?token={make_token()}&rooms=lobby") as ws:
            ws.receive_json()
            data = client.get("/rooms/lobby/status").json()

        assert data == {"room": "lobby", "online_count": 1, "is_active": True}
