"""Authentication and user-directory errors, grouped under the shared taxonomy."""

from webdav_gateway.core.exceptions.base import (
    ConflictError,
    ExpiredError,
    MalformedError,
    NotFoundError,
    ServiceErrorCode,
    UnauthorizedError,
)


# Directory

class UserNotFound(NotFoundError):
    code = ServiceErrorCode.USER_NOT_FOUND
    default_message = "User not found"


class DuplicateUsername(ConflictError):
    code = ServiceErrorCode.DUPLICATE_USERNAME
    default_message = "Username already exists"


class DuplicateAddress(ConflictError):
    code = ServiceErrorCode.DUPLICATE_ADDRESS
    default_message = "Wallet address already exists"


class InvalidAddress(MalformedError):
    code = ServiceErrorCode.INVALID_ADDRESS
    default_message = "Invalid wallet address"


# Credentials

class InvalidCredentials(UnauthorizedError):
    code = ServiceErrorCode.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class InvalidToken(UnauthorizedError):
    code = ServiceErrorCode.INVALID_TOKEN
    default_message = "Invalid token"


class TokenExpired(ExpiredError):
    code = ServiceErrorCode.EXPIRED_TOKEN
    default_message = "Token expired"


# Challenge / signature

class ChallengeExpired(ExpiredError):
    code = ServiceErrorCode.EXPIRED_CHALLENGE
    default_message = "Challenge expired or not found"


class InvalidSignature(MalformedError):
    code = ServiceErrorCode.INVALID_SIGNATURE
    default_message = "Invalid signature"


class InvalidSignatureLength(InvalidSignature):
    default_message = "Invalid signature length"


class SignatureMismatch(UnauthorizedError):
    code = ServiceErrorCode.SIGNATURE_MISMATCH
    default_message = "Signature address mismatch"
