"""
Wires configuration into the shared services the HTTP layer needs.

One Container is built per application and stored on ``app.state``; nothing
reaches the user directory or the authenticators through module globals.
"""

import time
from typing import List, Optional

from webdav_gateway.core.logger.logger import get_logger
from webdav_gateway.core.service.auth.authenticators.base import Authenticator
from webdav_gateway.core.service.auth.authenticators.basic import BasicAuthenticator
from webdav_gateway.core.service.auth.authenticators.web3 import Web3Authenticator
from webdav_gateway.core.service.webdav.dispatcher import ProtocolDispatcher, UnconfiguredDispatcher
from webdav_gateway.core.utils.clock import Clock, utcnow
from webdav_gateway.infra.config.config import AppConfig
from webdav_gateway.infra.crypto.password import PasswordHasher
from webdav_gateway.infra.repository.memory_user_repository import MemoryUserRepository

logger = get_logger(__name__)


class Container:
    def __init__(
        self,
        config: AppConfig,
        dispatcher: Optional[ProtocolDispatcher] = None,
        clock: Optional[Clock] = None,
        password_hasher: Optional[PasswordHasher] = None
    ):
        self.config = config
        self.clock = clock or utcnow
        self.started_at = time.monotonic()

        self.password_hasher = password_hasher or PasswordHasher(config.security.bcrypt_rounds)
        self.user_repository = MemoryUserRepository.from_config(
            config.users,
            self.password_hasher,
            default_permissions=config.webdav.permissions
        )

        self.authenticators: List[Authenticator] = []
        self.basic_auth = BasicAuthenticator(
            self.user_repository,
            self.password_hasher,
            no_password=config.security.no_password
        )
        self.authenticators.append(self.basic_auth)

        self.web3_auth: Optional[Web3Authenticator] = None
        if config.web3.enabled:
            self.web3_auth = Web3Authenticator(
                self.user_repository,
                jwt_secret=config.web3.jwt_secret,
                token_expiration=config.web3.token_expiration,
                challenge_ttl=config.web3.challenge_ttl,
                clock=self.clock
            )
            self.authenticators.append(self.web3_auth)

        self.dispatcher = dispatcher or UnconfiguredDispatcher()

        logger.info(
            "Container initialized",
            extra={
                "users": len(self.user_repository),
                "authenticators": [a.name for a in self.authenticators],
                "dispatcher": type(self.dispatcher).__name__
            }
        )

    def uptime(self) -> float:
        return time.monotonic() - self.started_at
