"""
Error envelope models, used to document error responses in OpenAPI.
The envelope itself is built by ErrorResponseBuilder.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Error code, e.g. EXPIRED_CHALLENGE")
    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="ISO 8601 UTC timestamp")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    request_id: Optional[str] = Field(None, description="Request ID for tracking")


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail


CHALLENGE_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed address"},
    404: {"model": ErrorResponse, "description": "Wallet address not registered"},
}

VERIFY_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing field or malformed signature"},
    401: {"model": ErrorResponse, "description": "Challenge expired or signature mismatch"},
    404: {"model": ErrorResponse, "description": "Wallet address not registered"},
}
