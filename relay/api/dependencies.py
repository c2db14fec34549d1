"""
API Dependencies

app.state에 등록된 단일 컴포넌트 인스턴스를 라우터에 주입합니다.
"""

from typing import Optional

from fastapi import Header, Request

from relay.core.config import Settings
from relay.core.errors import invalid_emit_key_error
from relay.services.ingress import ExternalEventIngress
from relay.websockets.registry import RoomRegistry


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.registry


def get_ingress(request: Request) -> ExternalEventIngress:
    return request.app.state.ingress


async def verify_emit_key(
    request: Request,
    x_emit_key: Optional[str] = Header(None),
):
    """emit_api_key가 설정된 경우 X-Emit-Key 헤더를 확인합니다."""
    expected = get_settings(request).emit_api_key
    if expected and x_emit_key != expected:
        raise invalid_emit_key_error()
