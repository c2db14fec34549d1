"""
Relay Server Configuration

환경 변수를 통한 설정 관리
"""

from typing import List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

load_dotenv()  # .env 파일 로드


class Settings(BaseSettings):
    """Relay 서버 설정"""

    # Application
    app_name: str = "Heart of Hope Relay"
    version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 10000

    # JWT (서명 키가 없으면 모든 연결을 거부)
    jwt_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("hoh_jwt_secret", "jwt_secret"),
    )
    jwt_algorithm: str = "HS256"

    # Rooms
    default_room: str = "team_chat"
    outbound_queue_size: int = 256

    # Out-of-band emit
    emit_api_key: Optional[str] = None

    # External message store
    message_store_url: Optional[str] = None
    message_store_api_key: Optional[str] = None
    message_store_timeout: float = 5.0

    # CORS
    cors_origins: List[str] = ["*"]

    # Logging
    log_dir: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # 추가 환경변수 무시
        populate_by_name = True


settings = Settings()
