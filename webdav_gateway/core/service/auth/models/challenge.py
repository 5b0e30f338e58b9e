from datetime import datetime
from pydantic import BaseModel, Field


class Challenge(BaseModel):
    """Challenge model for wallet authentication"""
    nonce: str = Field(..., description="Unique nonce for the challenge")
    address: str = Field(..., description="Lower-cased wallet address the challenge was issued for")
    message: str = Field(..., description="Challenge message to be signed")
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Check if the challenge has expired"""
        return now >= self.expires_at

    class Config:
        json_schema_extra = {
            "example": {
                "nonce": "0x1234567890abcdef",
                "address": "0x742d35cc6634c0532925a3b844bc454e4438f44e",
                "message": "Welcome to WebDAV!\n\nSign this message to authenticate.\n\n"
                           "Address: 0x742d35cc6634c0532925a3b844bc454e4438f44e\n"
                           "Nonce: 0x1234567890abcdef\nIssued At: 2024-02-06T10:00:00Z",
                "issued_at": "2024-02-06T10:00:00Z",
                "expires_at": "2024-02-06T10:05:00Z"
            }
        }
