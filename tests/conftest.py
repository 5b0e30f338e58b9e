"""
Shared test configuration and fixtures.
"""

import base64
from datetime import datetime, timedelta, timezone

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from webdav_gateway.app import create_app
from webdav_gateway.core.service.webdav.dispatcher import ProtocolDispatcher
from webdav_gateway.infra.config.config import (
    AppConfig,
    RuleConfig,
    UserConfig,
    Web3Config,
    WebDAVConfig,
)
from webdav_gateway.infra.crypto.password import PasswordHasher

JWT_SECRET = "test-jwt-secret-that-is-at-least-32-chars"

ALICE_KEY = "0x" + "11" * 32
BOB_KEY = "0x" + "22" * 32
STRANGER_KEY = "0x" + "33" * 32

ALICE = Account.from_key(ALICE_KEY)
BOB = Account.from_key(BOB_KEY)
STRANGER = Account.from_key(STRANGER_KEY)

ALICE_PASSWORD = "alice-password"
BOB_PASSWORD = "bob-password"


class FakeClock:
    """Controllable time source"""

    def __init__(self, now: datetime = None):
        self.now = now or datetime(2024, 2, 6, 10, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class RecordingDispatcher(ProtocolDispatcher):
    """Stands in for the file backend and records what reached it"""

    def __init__(self, existing=()):
        self.existing = set(existing)
        self.calls = []

    async def dispatch(self, request, user, path):
        self.calls.append((request.method, user.username, path))
        return JSONResponse({"method": request.method, "user": user.username, "path": path})

    async def exists(self, user, path):
        return path in self.existing


def sign_message(message: str, private_key: str) -> str:
    """personal_sign signature as 0x-prefixed hex, v encoded as 27/28"""
    signed = Account.sign_message(encode_defunct(text=message), private_key=private_key)
    return "0x" + bytes(signed.signature).hex()


def basic_auth(username: str, password: str) -> dict:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_config(**overrides) -> AppConfig:
    data = {
        "webdav": WebDAVConfig(prefix="/dav", permissions="R"),
        "web3": Web3Config(enabled=True, jwt_secret=JWT_SECRET),
        "users": [
            UserConfig(
                username="alice",
                password=ALICE_PASSWORD,
                wallet_address=ALICE.address,
                directory="/data/alice",
                permissions="R",
                rules=[RuleConfig(path="/private", permissions="RW")]
            ),
            UserConfig(
                username="bob",
                password=BOB_PASSWORD,
                wallet_address=BOB.address,
                directory="/data/bob",
                permissions="CRUD"
            ),
        ],
    }
    data.update(overrides)
    return AppConfig(**data)


@pytest.fixture
def password_hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def app_config():
    return make_config()


@pytest.fixture
def app(app_config, dispatcher, clock, password_hasher):
    return create_app(app_config, dispatcher=dispatcher, clock=clock, password_hasher=password_hasher)


@pytest.fixture
def client(app):
    return TestClient(app)
