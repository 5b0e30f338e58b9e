"""
Output DTOs for authentication and health endpoints.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class ChallengeResponseDto(BaseModel):
    """DTO for challenge creation response."""

    nonce: str = Field(..., description="Unique challenge nonce")
    message: str = Field(..., description="Message to be signed by wallet")
    expires_at: datetime = Field(..., description="Challenge expiration time")


class UserInfoDto(BaseModel):
    username: str
    wallet_address: str
    permissions: List[str] = Field(default_factory=list, description="Granted default permissions, CRUD order")


class VerifyResponseDto(BaseModel):
    """DTO for successful authentication response."""

    token: str = Field(..., description="Bearer token for subsequent WebDAV requests")
    expires_at: datetime = Field(..., description="Token expiration time")
    user: UserInfoDto


class HealthCheckResponseDto(BaseModel):
    status: str = "healthy"
    uptime: float = Field(..., description="Seconds since the application started")
    version: str
