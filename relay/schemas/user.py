from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict


class Identity(BaseModel):
    """토큰에서 추출한 연결 사용자 정보 (세션 동안 불변)"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="사용자 ID (sub 클레임)")
    display_name: str = Field(..., alias="name", description="표시명")
    email: Optional[str] = Field(None, description="이메일")

    def to_wire(self) -> Dict[str, Any]:
        """클라이언트로 전송할 사용자 정보 (id, name, email)"""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Identity":
        subject = str(claims["sub"])
        return cls(
            id=subject,
            name=claims.get("name") or subject,
            email=claims.get("email"),
        )
