import threading
from datetime import datetime
from typing import Dict, Optional

from webdav_gateway.core.logger.logger import logger
from webdav_gateway.core.service.auth.models.challenge import Challenge
from webdav_gateway.core.utils.clock import Clock, utcnow


class ChallengeStore:
    """In-memory store for authentication challenges, one live challenge per address"""

    def __init__(self, clock: Optional[Clock] = None):
        self._challenges: Dict[str, Challenge] = {}
        self._lock = threading.Lock()
        self._clock = clock or utcnow

    @staticmethod
    def _get_key(wallet_address: str) -> str:
        return wallet_address.strip().lower()

    def __len__(self) -> int:
        with self._lock:
            return len(self._challenges)

    async def save(self, challenge: Challenge) -> None:
        """Store a challenge, replacing any previous one for the same address"""
        key = self._get_key(challenge.address)
        with self._lock:
            replaced = key in self._challenges
            self._challenges[key] = challenge.model_copy(deep=True)

        logger.debug(
            "Saved challenge",
            extra={
                "wallet_address": key,
                "replaced": replaced,
                "expires_at": challenge.expires_at.isoformat()
            }
        )

    async def take(self, wallet_address: str) -> Optional[Challenge]:
        """
        Remove and return the challenge for an address.

        The entry is removed whether or not it has expired, so a nonce can be
        presented at most once. Callers check expiry on the returned value.
        """
        key = self._get_key(wallet_address)
        with self._lock:
            return self._challenges.pop(key, None)

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop every expired challenge; returns how many were removed"""
        now = now or self._clock()
        with self._lock:
            expired = [key for key, challenge in self._challenges.items() if challenge.is_expired(now)]
            for key in expired:
                del self._challenges[key]

        if expired:
            logger.debug("Purged expired challenges", extra={"count": len(expired)})
        return len(expired)
