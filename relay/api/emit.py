import logging

from fastapi import APIRouter, Depends, Request

from relay.api.dependencies import get_ingress, verify_emit_key
from relay.schemas.emit import EmitResponse
from relay.services.ingress import ExternalEventIngress

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Emit"])


@router.post("/emit", response_model=EmitResponse, dependencies=[Depends(verify_emit_key)])
async def emit_event(
    request: Request,
    ingress: ExternalEventIngress = Depends(get_ingress),
):
    """
    신뢰된 백엔드가 채팅방에 시스템 이벤트를 푸시합니다.

    Body: {"room": str, "event": str, "data": any}

    Returns:
        200 {"success": true, "delivered": n}
        400 room/event 누락 또는 JSON 파싱 실패
    """
    body = await request.body()
    emit_request = ingress.parse(body)
    delivered = await ingress.emit(emit_request)
    return EmitResponse(delivered=delivered)
