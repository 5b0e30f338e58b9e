"""
User domain model with its CRUD permission set and path rules.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field, model_validator

from webdav_gateway.core.service.auth.errors import InvalidAddress

PERMISSION_NAMES = ("create", "read", "update", "delete")

# Single-letter and long forms accepted by Permissions.has()
_PERMISSION_ALIASES = {
    "C": "create", "CREATE": "create",
    "R": "read", "READ": "read",
    "U": "update", "UPDATE": "update",
    "D": "delete", "DELETE": "delete",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Permissions(BaseModel):
    """Four independent CRUD flags"""
    create: bool = False
    read: bool = False
    update: bool = False
    delete: bool = False

    @classmethod
    def default(cls) -> "Permissions":
        """Read-only, the permission set of a freshly created user"""
        return cls(read=True)

    @classmethod
    def full(cls) -> "Permissions":
        return cls(create=True, read=True, update=True, delete=True)

    @classmethod
    def parse(cls, code: str) -> "Permissions":
        """
        Parse a permission code such as "CRUD", "rd" or "RW".

        Letters are case- and order-insensitive. "W" is shorthand for write
        access (create + update). Unknown letters are ignored.
        """
        code = (code or "").upper()
        write = "W" in code
        return cls(
            create="C" in code or write,
            read="R" in code,
            update="U" in code or write,
            delete="D" in code,
        )

    def has(self, permission: str) -> bool:
        name = _PERMISSION_ALIASES.get((permission or "").strip().upper())
        return bool(name) and getattr(self, name)

    def names(self) -> List[str]:
        return [name for name in PERMISSION_NAMES if getattr(self, name)]

    def __str__(self) -> str:
        return "".join(name[0].upper() for name in self.names())


class Rule(BaseModel):
    """Path-scoped permission override; regex rules use search semantics."""
    path: str
    permissions: Permissions = Field(default_factory=Permissions)
    regex: bool = False

    @model_validator(mode="after")
    def compile_pattern(self) -> "Rule":
        if self.regex:
            try:
                re.compile(self.path)
            except re.error as e:
                raise ValueError(f"invalid rule pattern {self.path!r}: {e}") from e
        return self

    def matches(self, path: str) -> bool:
        if self.regex:
            return re.search(self.path, path) is not None
        return path.startswith(self.path)

    def has_permission(self, permission: str) -> bool:
        return self.permissions.has(permission)


class User(BaseModel):
    """User identity record"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    username: str
    password: str = ""  # tagged hash, e.g. "{bcrypt}$2b$..."
    wallet_address: str = ""
    directory: str = ""
    permissions: Permissions = Field(default_factory=Permissions.default)
    rules: List[Rule] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def normalize_address(self) -> "User":
        # Stored lower-cased, compared lower-cased
        self.wallet_address = self.wallet_address.strip().lower()
        return self

    def set_password(self, hashed_password: str) -> None:
        self.password = hashed_password
        self.updated_at = _utcnow()

    def set_wallet_address(self, address: str) -> None:
        if not address or not address.strip():
            raise InvalidAddress("Wallet address cannot be empty")
        self.wallet_address = address.strip().lower()
        self.updated_at = _utcnow()

    def has_password(self) -> bool:
        return self.password != ""

    def has_wallet_address(self) -> bool:
        return self.wallet_address != ""

    def can_access(self, path: str, required: str) -> bool:
        """First matching rule decides; otherwise the default permissions apply."""
        for rule in self.rules:
            if rule.matches(path):
                return rule.has_permission(required)
        return self.permissions.has(required)


def can_access(user: User, path: str, required: str) -> bool:
    return user.can_access(path, required)
