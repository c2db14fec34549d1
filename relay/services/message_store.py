"""
External message store client.

채팅방 메시지를 외부 HTTP API에 저장합니다. 저장 실패는 ExternalWriteError로
변환되며, 호출한 쪽에서 로그를 남기고 해당 메시지의 브로드캐스트를 건너뜁니다.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from relay.core.errors import ExternalWriteError
from relay.schemas.user import Identity

logger = logging.getLogger(__name__)


class MessageStoreClient:
    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def create_message(
        self,
        room: str,
        sender: Identity,
        content: str,
        message_type: str = "text",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        메시지를 저장하고 저장소가 돌려준 메시지 객체를 반환합니다.

        Raises:
            ExternalWriteError: 연결 실패, 2xx 외 응답, JSON 객체가 아닌 응답
        """
        payload = {
            "user": sender.to_wire(),
            "content": content,
            "message_type": message_type,
            "metadata": metadata or {},
        }
        path = f"/rooms/{quote(room, safe='')}/messages"

        try:
            response = await self._client.post(path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalWriteError(
                f"Message store rejected message for room {room}: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ExternalWriteError(f"Message store unreachable: {e}") from e

        try:
            stored = response.json()
        except ValueError as e:
            raise ExternalWriteError("Message store returned invalid JSON") from e

        if not isinstance(stored, dict):
            raise ExternalWriteError("Message store returned unexpected payload")

        logger.debug(f"Stored message {stored.get('id')} in room {room}")
        return stored

    async def close(self):
        await self._client.aclose()
