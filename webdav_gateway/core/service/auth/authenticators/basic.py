import base64
import binascii
from typing import Optional

from fastapi import Request
from starlette.concurrency import run_in_threadpool

from webdav_gateway.core.logger.logger import get_logger
from webdav_gateway.core.service.auth.authenticators.base import Authenticator
from webdav_gateway.core.service.auth.errors import InvalidCredentials, UserNotFound
from webdav_gateway.core.service.auth.models.user import User
from webdav_gateway.infra.crypto.password import PasswordHasher, PasswordTooLong, UnsupportedHashFormat

logger = get_logger(__name__)


class BasicAuthenticator(Authenticator):
    """HTTP Basic authentication against the user directory"""

    name = "basic"
    scheme = "Basic"

    def __init__(
        self,
        user_repository,
        password_hasher: PasswordHasher,
        no_password: bool = False,
        realm: str = "WebDAV"
    ):
        self.user_repository = user_repository
        self.password_hasher = password_hasher
        self.no_password = no_password
        self.realm = realm

    def challenge(self) -> str:
        return f'Basic realm="{self.realm}", charset="UTF-8"'

    @staticmethod
    def _decode(credentials: str):
        try:
            decoded = base64.b64decode(credentials, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise InvalidCredentials("Malformed Basic credentials") from e

        username, sep, password = decoded.partition(":")
        if not sep or not username:
            raise InvalidCredentials("Malformed Basic credentials")
        return username, password

    async def authenticate(self, request: Request) -> Optional[User]:
        credentials = self._credentials(request)
        if credentials is None:
            return None

        username, password = self._decode(credentials)

        try:
            user = await self.user_repository.find_by_username(username)
        except UserNotFound:
            logger.warning("Basic authentication for unknown user", extra={"username": username})
            raise InvalidCredentials()

        if self.no_password:
            return user

        if not user.has_password():
            logger.warning("Basic authentication for user without password", extra={"username": username})
            raise InvalidCredentials()

        try:
            valid = await run_in_threadpool(self.password_hasher.verify, user.password, password)
        except PasswordTooLong as e:
            logger.warning(
                "Basic authentication with over-long password",
                extra={"username": username, "length": e.length}
            )
            raise InvalidCredentials()
        except UnsupportedHashFormat:
            logger.error("Stored password hash has an unknown format", extra={"username": username})
            raise InvalidCredentials()

        if not valid:
            logger.warning("Basic authentication failed", extra={"username": username})
            raise InvalidCredentials()

        return user
