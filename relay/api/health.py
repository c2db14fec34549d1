from datetime import datetime

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Health"])


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "Heart of Hope WebSocket server is running"


@router.get("/health/live")
async def liveness_check(request: Request):
    """Liveness probe endpoint"""
    return {
        "status": "alive",
        "timestamp": datetime.utcnow(),
        "connections": len(request.app.state.acceptor.sessions),
        "rooms": len(request.app.state.registry.rooms()),
    }
