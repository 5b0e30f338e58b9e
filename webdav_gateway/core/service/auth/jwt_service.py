import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError
from pydantic import ValidationError

from webdav_gateway.core.logger.logger import get_logger
from webdav_gateway.core.service.auth.errors import InvalidToken
from webdav_gateway.core.service.auth.models.token import Token, TokenPayload
from webdav_gateway.core.utils.clock import Clock, utcnow

logger = get_logger(__name__)


class TokenService:
    """Issues and parses the bearer tokens handed out after wallet verification"""

    algorithm = "HS256"

    def __init__(self, secret_key: str, expiration: timedelta, clock: Optional[Clock] = None):
        self.secret_key = secret_key
        self.expiration = expiration
        self._clock = clock or utcnow

    def issue(self, address: str) -> Token:
        """Sign a token bound to ``address``, valid for the configured expiration"""
        address = address.strip().lower()
        # JWT timestamps are whole seconds
        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + self.expiration

        payload = TokenPayload(
            sub=address,
            address=address,
            iat=int(issued_at.timestamp()),
            exp=int(expires_at.timestamp()),
            jti=str(uuid.uuid4())
        )

        value = jwt.encode(payload.model_dump(), self.secret_key, algorithm=self.algorithm)

        return Token(
            value=value,
            address=address,
            issued_at=issued_at,
            expires_at=expires_at,
            jti=payload.jti
        )

    def parse(self, value: str) -> Token:
        """
        Decode and validate a token string.

        The signature is checked by PyJWT; expiry is checked against the
        service clock rather than wall time.

        Raises:
            InvalidToken: empty, tampered or structurally wrong token
            TokenExpired: token is past its expiry
        """
        if not value:
            raise InvalidToken()

        try:
            claims = jwt.decode(
                value,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False}
            )
            payload = TokenPayload(**claims)
        except (InvalidTokenError, ValidationError) as e:
            logger.warning("Invalid token", extra={"error": str(e)})
            raise InvalidToken() from e

        token = Token(
            value=value,
            address=payload.address.lower(),
            issued_at=datetime.fromtimestamp(payload.iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload.exp, tz=timezone.utc),
            jti=payload.jti
        )
        token.validate_at(self._clock())
        return token
