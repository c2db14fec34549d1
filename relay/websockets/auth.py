from typing import Optional
import logging

from jose import JWTError, jwt
from pydantic import ValidationError

from relay.core.errors import AuthError, InvalidCredential, MissingCredential, ServerMisconfigured
from relay.core.logging import log_authentication_event, log_security_event
from relay.schemas.user import Identity

logger = logging.getLogger(__name__)


class TokenAuthenticator:
    """서명된 JWT를 검증하고 연결 사용자 Identity를 추출합니다."""

    def __init__(self, secret: Optional[str], algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def verify(self, token: Optional[str]) -> Identity:
        """
        토큰을 검증하고 Identity를 반환합니다.

        Args:
            token: 쿼리 파라미터로 전달된 JWT

        Returns:
            Identity: sub, name, email 클레임으로 만든 사용자 정보

        Raises:
            MissingCredential: 토큰이 없는 경우
            ServerMisconfigured: 서버에 검증 키가 설정되지 않은 경우
            InvalidCredential: 서명 또는 만료 검증에 실패한 경우
                (sub 누락, name/email 클레임 형식 오류 포함)
        """
        if not token or not token.strip():
            raise MissingCredential()

        # 검증 키가 없으면 절대 통과시키지 않음
        if not self.secret:
            raise ServerMisconfigured()

        try:
            claims = jwt.decode(token.strip(), self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidCredential(f"Invalid token: {e}") from e

        if not claims.get("sub"):
            raise InvalidCredential("Token missing subject (sub)")

        try:
            return Identity.from_claims(claims)
        except ValidationError as e:
            raise InvalidCredential("Token claims malformed") from e


def authenticate(authenticator: TokenAuthenticator, token: Optional[str],
                 client: Optional[str] = None) -> Identity:
    """verify()를 감싸 인증 결과를 로깅합니다. AuthError는 그대로 전파됩니다."""
    try:
        identity = authenticator.verify(token)
    except ServerMisconfigured:
        log_security_event(logger, "jwt_secret_missing", severity="high", ip_address=client)
        raise
    except AuthError as e:
        log_authentication_event(logger, "websocket_connect", success=False,
                                 reason=e.detail, close_code=e.close_code, ip_address=client)
        raise

    log_authentication_event(logger, "websocket_connect", user_id=identity.id)
    return identity
