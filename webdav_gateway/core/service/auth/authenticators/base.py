from abc import ABC, abstractmethod
from typing import Optional

from fastapi import Request

from webdav_gateway.core.service.auth.models.user import User


class Authenticator(ABC):
    """
    Resolves a request's credentials to a User.

    ``authenticate`` returns ``None`` when the credential material this
    authenticator understands is absent, so the next one can try. It raises an
    ``UnauthorizedError`` subclass when the material is present but wrong.
    """

    name: str = ""
    scheme: str = ""

    @abstractmethod
    async def authenticate(self, request: Request) -> Optional[User]:
        ...

    @abstractmethod
    def challenge(self) -> str:
        """Value for the WWW-Authenticate header sent with a 401"""
        ...

    def _credentials(self, request: Request) -> Optional[str]:
        """Return the Authorization parameter when it uses this scheme"""
        authorization = request.headers.get("Authorization", "")
        scheme, _, param = authorization.partition(" ")
        if scheme.lower() != self.scheme.lower():
            return None
        return param.strip()
