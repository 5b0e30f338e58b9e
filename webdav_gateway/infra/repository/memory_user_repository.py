"""
In-memory user directory indexed by username and by lower-cased wallet address.
"""

from typing import Dict, Iterable, List, Optional

from webdav_gateway.core.logger.logger import get_logger
from webdav_gateway.core.service.auth.errors import DuplicateAddress, DuplicateUsername, UserNotFound
from webdav_gateway.core.service.auth.models.user import Permissions, Rule, User
from webdav_gateway.core.utils.locks import ReadWriteLock
from webdav_gateway.infra.config.config import UserConfig
from webdav_gateway.infra.crypto.password import PasswordHasher

logger = get_logger(__name__)


class MemoryUserRepository:
    """
    Thread-safe user directory.

    Records are copied on the way in and on the way out, so callers never
    share mutable state with the directory. Both indices change together
    under one write lock.
    """

    def __init__(self, users: Optional[Iterable[User]] = None):
        self._users: Dict[str, User] = {}
        self._wallet_addresses: Dict[str, str] = {}  # address -> username
        self._lock = ReadWriteLock()

        for user in users or []:
            self._save_locked(user)

    @classmethod
    def from_config(
        cls,
        user_configs: Iterable[UserConfig],
        password_hasher: PasswordHasher,
        default_permissions: str = ""
    ) -> "MemoryUserRepository":
        """
        Build the directory from configuration entries.

        Plain-text passwords are hashed; ``{bcrypt}``-tagged ones are kept.
        A user without its own permission code gets ``default_permissions``.
        """
        users = []
        for cfg in user_configs:
            user = User(username=cfg.username, directory=cfg.directory)

            if cfg.password:
                if password_hasher.is_hashed(cfg.password):
                    user.set_password(cfg.password)
                else:
                    user.set_password(password_hasher.hash(cfg.password))

            if cfg.wallet_address:
                user.set_wallet_address(cfg.wallet_address)

            code = cfg.permissions or default_permissions
            if code:
                user.permissions = Permissions.parse(code)

            user.rules = [
                Rule(path=rule.path, permissions=Permissions.parse(rule.permissions), regex=rule.regex)
                for rule in cfg.rules
            ]
            users.append(user)

        repository = cls(users)
        logger.info("User directory loaded", extra={"users": len(repository)})
        return repository

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._users)

    async def find_by_username(self, username: str) -> User:
        with self._lock.read():
            user = self._users.get(username)
            if user is None:
                raise UserNotFound(details={"username": username})
            return user.model_copy(deep=True)

    async def find_by_wallet_address(self, address: str) -> User:
        address = (address or "").strip().lower()
        with self._lock.read():
            username = self._wallet_addresses.get(address)
            if not address or username is None:
                raise UserNotFound(details={"wallet_address": address})
            return self._users[username].model_copy(deep=True)

    async def save(self, user: User) -> None:
        """
        Insert or update a user.

        Raises:
            DuplicateUsername: another user already has this username
            DuplicateAddress: another user already has this wallet address
        """
        with self._lock.write():
            self._save_locked(user)

    def _save_locked(self, user: User) -> None:
        address = user.wallet_address.strip().lower()

        existing = self._users.get(user.username)
        if existing is not None and existing.id != user.id:
            raise DuplicateUsername(details={"username": user.username})

        if address:
            owner = self._wallet_addresses.get(address)
            if owner is not None and self._users[owner].id != user.id:
                raise DuplicateAddress(details={"wallet_address": address})

        # Drop index entries left behind by an earlier version of this record
        previous = next((u for u in self._users.values() if u.id == user.id), None)
        if previous is not None:
            if previous.username != user.username:
                del self._users[previous.username]
            if previous.wallet_address and previous.wallet_address != address:
                self._wallet_addresses.pop(previous.wallet_address, None)

        # Assignment skips validation, so the address may arrive in mixed case
        self._users[user.username] = user.model_copy(update={"wallet_address": address}, deep=True)
        if address:
            self._wallet_addresses[address] = user.username

    async def delete(self, username: str) -> None:
        with self._lock.write():
            user = self._users.pop(username, None)
            if user is None:
                raise UserNotFound(details={"username": username})
            if user.wallet_address:
                self._wallet_addresses.pop(user.wallet_address, None)

    async def list(self) -> List[User]:
        """Snapshot of every user, ordered by username"""
        with self._lock.read():
            return [self._users[name].model_copy(deep=True) for name in sorted(self._users)]
