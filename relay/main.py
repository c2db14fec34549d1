"""
Relay Server - FastAPI Application

JWT 인증된 WebSocket 연결, 채팅방 멤버십 관리, 채팅방 범위 브로드캐스트를 담당합니다.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from relay import api
from relay.core.config import Settings, settings as default_settings
from relay.core.logging import setup_logging
from relay.middleware.error_handler import ErrorHandlerMiddleware, create_http_exception_handler
from relay.middleware.logging_middleware import LoggingMiddleware
from relay.services.ingress import ExternalEventIngress
from relay.services.message_store import MessageStoreClient
from relay.websockets import (
    BroadcastDispatcher,
    ConnectionAcceptor,
    MessageRouter,
    RoomRegistry,
    TokenAuthenticator,
)

logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None) -> FastAPI:
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        if not config.jwt_secret:
            logger.warning("JWT secret is not configured; all WebSocket connections will be rejected")
        logger.info(f"{config.app_name} starting up")

        yield

        # Shutdown
        logger.info(f"{config.app_name} shutting down")
        await app.state.acceptor.shutdown()
        if app.state.message_store is not None:
            await app.state.message_store.close()

    app = FastAPI(
        title=config.app_name,
        version=config.version,
        lifespan=lifespan
    )

    # 하나의 RoomRegistry를 모든 컴포넌트에 주입
    registry = RoomRegistry()
    dispatcher = BroadcastDispatcher(registry)
    message_store = None
    if config.message_store_url:
        message_store = MessageStoreClient(
            config.message_store_url,
            api_key=config.message_store_api_key,
            timeout=config.message_store_timeout,
        )
    router = MessageRouter(registry, dispatcher, message_store=message_store)

    app.state.settings = config
    app.state.registry = registry
    app.state.dispatcher = dispatcher
    app.state.message_store = message_store
    app.state.acceptor = ConnectionAcceptor(
        TokenAuthenticator(config.jwt_secret, config.jwt_algorithm),
        registry,
        dispatcher,
        router,
        default_room=config.default_room,
        queue_size=config.outbound_queue_size,
    )
    app.state.ingress = ExternalEventIngress(dispatcher)

    # Middleware
    app.add_middleware(ErrorHandlerMiddleware, debug=config.debug)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, create_http_exception_handler())

    # Include routers
    api.include_routers(app, "api", api.__path__)

    return app


setup_logging(default_settings)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "relay.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug
    )
