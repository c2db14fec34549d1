import pytest

from relay.core.errors import IngressValidationException
from relay.services.ingress import ExternalEventIngress


class TestIngressParsing:
    """/emit 요청 본문 검증 테스트"""

    def test_valid_body(self):
        request = ExternalEventIngress.parse(b'{"room": "lobby", "event": "announcement", "data": {"text": "hi"}}')

        assert request.room == "lobby"
        assert request.event == "announcement"
        assert request.data == {"text": "hi"}

    def test_data_is_optional(self):
        request = ExternalEventIngress.parse(b'{"room": "lobby", "event": "refresh"}')
        assert request.data is None

    @pytest.mark.parametrize("body", [b"", b"not json", b"[1, 2]", b'"lobby"'])
    def test_unparsable_body(self, body):
        with pytest.raises(IngressValidationException) as exc_info:
            ExternalEventIngress.parse(body)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("body", [
        b'{"event": "announcement"}',
        b'{"room": "lobby"}',
        b'{"room": "", "event": "announcement"}',
        b'{"room": "lobby", "event": ""}',
    ])
    def test_missing_room_or_event(self, body):
        with pytest.raises(IngressValidationException) as exc_info:
            ExternalEventIngress.parse(body)
        assert exc_info.value.message == "room and event are required"


class TestIngressEmit:

    @pytest.mark.asyncio
    async def test_emit_reaches_every_member(self, registry, dispatcher, make_session):
        ingress = ExternalEventIngress(dispatcher)
        alice = make_session("1")
        bob = make_session("2")
        await registry.join("lobby", alice)
        await registry.join("lobby", bob)

        delivered = await ingress.emit(ExternalEventIngress.parse(
            b'{"room": "lobby", "event": "announcement", "data": {"text": "hi"}}'
        ))

        assert delivered == 2
        for session in (alice, bob):
            await session.flush()
            event = session.websocket.sent[0]
            assert event["type"] == "event"
            assert event["from"] == {"system": True}
            assert event["data"] == {"text": "hi"}

    @pytest.mark.asyncio
    async def test_emit_to_absent_room(self, dispatcher):
        ingress = ExternalEventIngress(dispatcher)
        request = ExternalEventIngress.parse(b'{"room": "ghost", "event": "announcement"}')

        assert await ingress.emit(request) == 0
