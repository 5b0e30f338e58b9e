import secrets
from datetime import timedelta
from typing import Optional

from fastapi import Request

from webdav_gateway.core.logger.logger import get_logger
from webdav_gateway.core.service.auth.authenticators.base import Authenticator
from webdav_gateway.core.service.auth.cache.challenge_store import ChallengeStore
from webdav_gateway.core.service.auth.errors import (
    ChallengeExpired,
    InvalidAddress,
    InvalidToken,
    UserNotFound,
)
from webdav_gateway.core.service.auth.jwt_service import TokenService
from webdav_gateway.core.service.auth.models.challenge import Challenge
from webdav_gateway.core.service.auth.models.token import Token
from webdav_gateway.core.service.auth.models.user import User
from webdav_gateway.core.service.auth.signature_verification import EthereumSigner
from webdav_gateway.core.utils.clock import Clock, utcnow

logger = get_logger(__name__)

NONCE_BYTES = 32

CHALLENGE_MESSAGE_TEMPLATE = (
    "Welcome to WebDAV!\n\n"
    "Sign this message to authenticate.\n\n"
    "Address: {address}\n"
    "Nonce: {nonce}\n"
    "Issued At: {issued_at}"
)


class Web3Authenticator(Authenticator):
    """
    Wallet authentication.

    Issues sign-this-message challenges, exchanges a valid signature for a
    bearer token, and in its authenticator role accepts ``Bearer <token>``.
    """

    name = "web3"
    scheme = "Bearer"

    def __init__(
        self,
        user_repository,
        jwt_secret: str,
        token_expiration: timedelta = timedelta(hours=24),
        challenge_ttl: timedelta = timedelta(minutes=5),
        challenge_store: Optional[ChallengeStore] = None,
        signer: Optional[EthereumSigner] = None,
        clock: Optional[Clock] = None,
        realm: str = "WebDAV"
    ):
        self.user_repository = user_repository
        self.challenge_ttl = challenge_ttl
        self.realm = realm
        self._clock = clock or utcnow
        self.challenge_store = challenge_store or ChallengeStore(clock=self._clock)
        self.signer = signer or EthereumSigner()
        self.token_service = TokenService(jwt_secret, token_expiration, clock=self._clock)

    def challenge(self) -> str:
        return f'Bearer realm="{self.realm}"'

    @staticmethod
    def _generate_nonce() -> str:
        return "0x" + secrets.token_hex(NONCE_BYTES)

    async def create_challenge(self, address: str) -> Challenge:
        """Create and store a fresh challenge, replacing any previous one for the address"""
        if not self.signer.is_valid_address(address):
            raise InvalidAddress(details={"address": address})

        address = address.lower()
        nonce = self._generate_nonce()
        issued_at = self._clock()
        challenge = Challenge(
            nonce=nonce,
            address=address,
            message=CHALLENGE_MESSAGE_TEMPLATE.format(
                address=address,
                nonce=nonce,
                issued_at=issued_at.isoformat().replace("+00:00", "Z")
            ),
            issued_at=issued_at,
            expires_at=issued_at + self.challenge_ttl
        )

        # Drop challenges nobody came back to verify
        await self.challenge_store.purge_expired(issued_at)
        await self.challenge_store.save(challenge)
        logger.info("Created new challenge", extra={"wallet_address": address})
        return challenge

    async def verify_signature(self, address: str, signature: str) -> Token:
        """
        Verify a signature over the stored challenge and issue a token.

        The challenge is consumed by the first attempt whatever its outcome,
        so a captured signature cannot be replayed against the same nonce.
        """
        address = address.strip().lower()
        challenge = await self.challenge_store.take(address)

        if challenge is None or challenge.is_expired(self._clock()):
            logger.warning("No live challenge for address", extra={"wallet_address": address})
            raise ChallengeExpired()

        self.signer.verify_signature(challenge.message, signature, address)

        token = self.token_service.issue(address)
        logger.info(
            "Signature verified, token issued",
            extra={"wallet_address": address, "expires_at": token.expires_at.isoformat()}
        )
        return token

    async def authenticate(self, request: Request) -> Optional[User]:
        credentials = self._credentials(request)
        if credentials is None:
            return None

        token = self.token_service.parse(credentials)

        try:
            return await self.user_repository.find_by_wallet_address(token.address)
        except UserNotFound:
            logger.warning("Token for unknown wallet address", extra={"wallet_address": token.address})
            raise InvalidToken()
