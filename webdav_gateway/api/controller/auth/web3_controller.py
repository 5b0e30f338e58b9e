"""
Wallet challenge/verify endpoints. Both are reachable without credentials.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from webdav_gateway.api.controller.auth.dto.error_responses import (
    CHALLENGE_ERROR_RESPONSES,
    VERIFY_ERROR_RESPONSES,
)
from webdav_gateway.api.controller.auth.dto.input_dto import ChallengeRequestDto, VerifyRequestDto
from webdav_gateway.api.controller.auth.dto.output_dto import (
    ChallengeResponseDto,
    UserInfoDto,
    VerifyResponseDto,
)
from webdav_gateway.core.dependencies import get_user_repository, get_web3_authenticator
from webdav_gateway.core.exceptions.base import MalformedError, ServiceErrorCode
from webdav_gateway.core.logger.logger import get_logger
from webdav_gateway.core.service.auth.authenticators.web3 import Web3Authenticator
from webdav_gateway.core.service.auth.errors import InvalidAddress, UserNotFound
from webdav_gateway.infra.repository.memory_user_repository import MemoryUserRepository

logger = get_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["Web3 Authentication"])


async def _issue_challenge(
    address: Optional[str],
    web3_auth: Web3Authenticator,
    user_repository: MemoryUserRepository
) -> ChallengeResponseDto:
    if not address:
        raise MalformedError("Address parameter is required", code=ServiceErrorCode.MISSING_ADDRESS)
    if not web3_auth.signer.is_valid_address(address):
        raise InvalidAddress(details={"address": address})

    address = address.lower()
    try:
        user = await user_repository.find_by_wallet_address(address)
    except UserNotFound:
        logger.info("Wallet address not registered", extra={"wallet_address": address})
        raise UserNotFound("Wallet address not registered")

    challenge = await web3_auth.create_challenge(address)
    logger.info(
        "Challenge issued",
        extra={"wallet_address": address, "username": user.username, "nonce": challenge.nonce}
    )
    return ChallengeResponseDto(
        nonce=challenge.nonce,
        message=challenge.message,
        expires_at=challenge.expires_at
    )


@router.get("/challenge", response_model=ChallengeResponseDto, responses=CHALLENGE_ERROR_RESPONSES)
async def get_challenge(
    address: Optional[str] = Query(None, description="Ethereum wallet address"),
    web3_auth: Web3Authenticator = Depends(get_web3_authenticator),
    user_repository: MemoryUserRepository = Depends(get_user_repository)
):
    """Create a challenge for ``?address=0x...``."""
    return await _issue_challenge(address, web3_auth, user_repository)


@router.post("/challenge", response_model=ChallengeResponseDto, responses=CHALLENGE_ERROR_RESPONSES)
async def post_challenge(
    request: ChallengeRequestDto,
    web3_auth: Web3Authenticator = Depends(get_web3_authenticator),
    user_repository: MemoryUserRepository = Depends(get_user_repository)
):
    """Create a challenge for ``{"address": "0x..."}``."""
    return await _issue_challenge(request.address, web3_auth, user_repository)


@router.post("/verify", response_model=VerifyResponseDto, responses=VERIFY_ERROR_RESPONSES)
async def verify_signature(
    request: VerifyRequestDto,
    web3_auth: Web3Authenticator = Depends(get_web3_authenticator),
    user_repository: MemoryUserRepository = Depends(get_user_repository)
):
    """
    Verify a signed challenge and return a bearer token.

    The stored challenge is consumed by this call whether or not the
    signature checks out; request a new one to retry.
    """
    if not request.address:
        raise MalformedError("Address is required", code=ServiceErrorCode.MISSING_ADDRESS)
    if not request.signature:
        raise MalformedError("Signature is required", code=ServiceErrorCode.MISSING_SIGNATURE)

    address = request.address.lower()
    try:
        user = await user_repository.find_by_wallet_address(address)
    except UserNotFound:
        logger.info("Wallet address not registered", extra={"wallet_address": address})
        raise UserNotFound("Wallet address not registered")

    token = await web3_auth.verify_signature(address, request.signature)

    logger.info(
        "User authenticated via web3",
        extra={"wallet_address": address, "username": user.username}
    )
    return VerifyResponseDto(
        token=token.value,
        expires_at=token.expires_at,
        user=UserInfoDto(
            username=user.username,
            wallet_address=user.wallet_address,
            permissions=user.permissions.names()
        )
    )
