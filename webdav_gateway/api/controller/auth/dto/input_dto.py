"""
Input DTOs for the wallet authentication endpoints.

Fields are optional so that a missing value is reported with its own error
code (MISSING_ADDRESS, MISSING_SIGNATURE) instead of a generic 422.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ChallengeRequestDto(BaseModel):
    """DTO for challenge creation request."""

    address: Optional[str] = Field(None, max_length=100, description="Ethereum wallet address")

    @field_validator("address")
    @classmethod
    def strip_address(cls, v):
        return v.strip() if v else v


class VerifyRequestDto(BaseModel):
    """DTO for signature verification request."""

    address: Optional[str] = Field(None, max_length=100, description="Ethereum wallet address")
    signature: Optional[str] = Field(None, max_length=200, description="Hex personal_sign signature, 0x prefix optional")

    @field_validator("address", "signature")
    @classmethod
    def strip_value(cls, v):
        return v.strip() if v else v
