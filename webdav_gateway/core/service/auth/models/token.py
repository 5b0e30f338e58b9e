from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from webdav_gateway.core.service.auth.errors import InvalidToken, TokenExpired


class TokenPayload(BaseModel):
    """JWT token payload structure"""
    sub: str = Field(..., description="Lower-cased wallet address")
    address: str = Field(..., description="Lower-cased wallet address")
    iat: int = Field(..., description="Issued at, unix seconds")
    exp: int = Field(..., description="Expiration, unix seconds")
    jti: str = Field(..., description="Unique token identifier")


class Token(BaseModel):
    """Bearer credential issued after a successful signature verification"""
    value: str
    address: str
    issued_at: datetime
    expires_at: datetime
    jti: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def validate_at(self, now: datetime) -> None:
        """Raise unless the token is non-empty and ``now < expires_at``"""
        if not self.value:
            raise InvalidToken()
        if self.is_expired(now):
            raise TokenExpired()
