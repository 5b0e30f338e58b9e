from datetime import timedelta

import pytest
from starlette.requests import Request

from webdav_gateway.core.exceptions.base import ExpiredError
from webdav_gateway.core.service.auth.authenticators.web3 import Web3Authenticator
from webdav_gateway.core.service.auth.errors import (
    ChallengeExpired,
    InvalidAddress,
    InvalidSignature,
    InvalidToken,
    SignatureMismatch,
    TokenExpired,
)
from webdav_gateway.infra.repository.memory_user_repository import MemoryUserRepository

from conftest import ALICE, ALICE_KEY, BOB, BOB_KEY, JWT_SECRET, STRANGER, make_config, sign_message


def _request(headers: dict) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


@pytest.fixture
def repository(password_hasher):
    return MemoryUserRepository.from_config(make_config().users, password_hasher)


@pytest.fixture
def web3_auth(repository, clock):
    return Web3Authenticator(
        repository,
        jwt_secret=JWT_SECRET,
        token_expiration=timedelta(hours=24),
        challenge_ttl=timedelta(minutes=5),
        clock=clock
    )


class TestCreateChallenge:
    @pytest.mark.asyncio
    async def test_challenge_contents(self, web3_auth, clock):
        challenge = await web3_auth.create_challenge(ALICE.address)

        assert challenge.address == ALICE.address.lower()
        assert challenge.nonce.startswith("0x") and len(challenge.nonce) == 66
        assert challenge.nonce in challenge.message
        assert f"Address: {ALICE.address.lower()}" in challenge.message
        assert challenge.message.startswith("Welcome to WebDAV!")
        assert challenge.issued_at == clock.now
        assert challenge.expires_at == clock.now + timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_new_challenge_evicts_expired_ones(self, web3_auth, clock):
        await web3_auth.create_challenge(BOB.address)
        clock.advance(timedelta(minutes=5))

        await web3_auth.create_challenge(ALICE.address)

        assert len(web3_auth.challenge_store) == 1
        with pytest.raises(ChallengeExpired):
            await web3_auth.verify_signature(BOB.address, "0x" + "00" * 65)

    @pytest.mark.asyncio
    async def test_nonces_are_unique(self, web3_auth):
        first = await web3_auth.create_challenge(ALICE.address)
        second = await web3_auth.create_challenge(ALICE.address)
        assert first.nonce != second.nonce

    @pytest.mark.asyncio
    async def test_new_challenge_replaces_previous(self, web3_auth):
        first = await web3_auth.create_challenge(ALICE.address)
        await web3_auth.create_challenge(ALICE.address)

        with pytest.raises(SignatureMismatch):
            await web3_auth.verify_signature(ALICE.address, sign_message(first.message, ALICE_KEY))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", ["", "0x1234", "not-an-address", "0x" + "z" * 40])
    async def test_invalid_address(self, web3_auth, address):
        with pytest.raises(InvalidAddress):
            await web3_auth.create_challenge(address)


class TestVerifySignature:
    @pytest.mark.asyncio
    async def test_valid_signature_issues_token(self, web3_auth, clock):
        challenge = await web3_auth.create_challenge(ALICE.address)
        token = await web3_auth.verify_signature(ALICE.address, sign_message(challenge.message, ALICE_KEY))

        assert token.value
        assert token.address == challenge.address
        assert token.expires_at == clock.now + timedelta(hours=24)
        assert not token.is_expired(clock.now)

    @pytest.mark.asyncio
    async def test_replay_after_success_fails(self, web3_auth):
        challenge = await web3_auth.create_challenge(ALICE.address)
        signature = sign_message(challenge.message, ALICE_KEY)
        await web3_auth.verify_signature(ALICE.address, signature)

        with pytest.raises(ChallengeExpired):
            await web3_auth.verify_signature(ALICE.address, signature)

    @pytest.mark.asyncio
    async def test_challenge_consumed_by_failed_attempt(self, web3_auth):
        challenge = await web3_auth.create_challenge(ALICE.address)

        with pytest.raises(SignatureMismatch):
            await web3_auth.verify_signature(ALICE.address, sign_message(challenge.message, BOB_KEY))

        with pytest.raises(ChallengeExpired):
            await web3_auth.verify_signature(ALICE.address, sign_message(challenge.message, ALICE_KEY))

    @pytest.mark.asyncio
    async def test_malformed_signature_consumes_challenge(self, web3_auth):
        await web3_auth.create_challenge(ALICE.address)

        with pytest.raises(InvalidSignature):
            await web3_auth.verify_signature(ALICE.address, "0xdeadbeef")
        assert len(web3_auth.challenge_store) == 0

    @pytest.mark.asyncio
    async def test_expired_challenge(self, web3_auth, clock):
        challenge = await web3_auth.create_challenge(ALICE.address)
        signature = sign_message(challenge.message, ALICE_KEY)
        clock.advance(timedelta(minutes=5))

        with pytest.raises(ChallengeExpired) as exc_info:
            await web3_auth.verify_signature(ALICE.address, signature)
        assert isinstance(exc_info.value, ExpiredError)

    @pytest.mark.asyncio
    async def test_no_challenge(self, web3_auth):
        with pytest.raises(ChallengeExpired):
            await web3_auth.verify_signature(ALICE.address, "0x" + "00" * 65)

    @pytest.mark.asyncio
    async def test_signature_for_a_never_verifies_for_b(self, web3_auth):
        alice_challenge = await web3_auth.create_challenge(ALICE.address)
        await web3_auth.create_challenge(BOB.address)
        signature = sign_message(alice_challenge.message, ALICE_KEY)

        with pytest.raises(SignatureMismatch):
            await web3_auth.verify_signature(BOB.address, signature)

    @pytest.mark.asyncio
    async def test_address_case_does_not_matter(self, web3_auth):
        challenge = await web3_auth.create_challenge(ALICE.address)
        token = await web3_auth.verify_signature(
            ALICE.address.upper().replace("0X", "0x"),
            sign_message(challenge.message, ALICE_KEY)
        )
        assert token.address == ALICE.address.lower()

    @pytest.mark.asyncio
    async def test_token_expires(self, web3_auth, clock):
        challenge = await web3_auth.create_challenge(ALICE.address)
        token = await web3_auth.verify_signature(ALICE.address, sign_message(challenge.message, ALICE_KEY))

        clock.advance(timedelta(hours=24, seconds=1))
        assert token.is_expired(clock.now)
        with pytest.raises(TokenExpired):
            token.validate_at(clock.now)


class TestBearerAuthentication:
    async def _token(self, web3_auth, address, key):
        challenge = await web3_auth.create_challenge(address)
        return await web3_auth.verify_signature(address, sign_message(challenge.message, key))

    @pytest.mark.asyncio
    async def test_declines_without_bearer(self, web3_auth):
        assert await web3_auth.authenticate(_request({})) is None
        assert await web3_auth.authenticate(_request({"Authorization": "Basic Zm9vOmJhcg=="})) is None

    @pytest.mark.asyncio
    async def test_resolves_exact_user(self, web3_auth):
        alice_token = await self._token(web3_auth, ALICE.address, ALICE_KEY)
        bob_token = await self._token(web3_auth, BOB.address, BOB_KEY)

        alice = await web3_auth.authenticate(_request({"Authorization": f"Bearer {alice_token.value}"}))
        bob = await web3_auth.authenticate(_request({"Authorization": f"Bearer {bob_token.value}"}))

        assert alice.username == "alice"
        assert bob.username == "bob"

    @pytest.mark.asyncio
    async def test_tampered_token(self, web3_auth):
        token = await self._token(web3_auth, ALICE.address, ALICE_KEY)
        with pytest.raises(InvalidToken):
            await web3_auth.authenticate(_request({"Authorization": f"Bearer {token.value}x"}))

    @pytest.mark.asyncio
    async def test_empty_bearer(self, web3_auth):
        with pytest.raises(InvalidToken):
            await web3_auth.authenticate(_request({"Authorization": "Bearer "}))

    @pytest.mark.asyncio
    async def test_expired_token(self, web3_auth, clock):
        token = await self._token(web3_auth, ALICE.address, ALICE_KEY)
        clock.advance(timedelta(days=2))
        with pytest.raises(TokenExpired):
            await web3_auth.authenticate(_request({"Authorization": f"Bearer {token.value}"}))

    @pytest.mark.asyncio
    async def test_token_for_unregistered_address(self, web3_auth):
        token = web3_auth.token_service.issue(STRANGER.address)
        with pytest.raises(InvalidToken):
            await web3_auth.authenticate(_request({"Authorization": f"Bearer {token.value}"}))

    def test_challenge_header(self, web3_auth):
        assert web3_auth.challenge().startswith("Bearer ")
