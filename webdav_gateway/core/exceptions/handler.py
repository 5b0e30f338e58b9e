"""
Centralized error handling.

Every failure leaves the gateway in the same envelope:

    {"success": false, "error": {"code", "message", "timestamp", "request_id", "details"?}}
"""

import traceback
from typing import Dict, Any, List, Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from datetime import datetime, timezone

from webdav_gateway.core.exceptions.base import InternalError, ServiceError, ServiceErrorCode, UnauthorizedError
from webdav_gateway.core.logger.logger import get_logger
from webdav_gateway.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", "unknown")


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "request_id": _request_id(request),
        "path": request.url.path,
        "method": request.method
    }


class ErrorResponseBuilder:
    """Builds the error envelope"""

    @staticmethod
    def build_error_response(
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        error: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        }
        if details:
            error["details"] = details
        if request_id:
            error["request_id"] = request_id
        return {"success": False, "error": error}

    @classmethod
    def from_service_error(cls, exc: ServiceError, request_id: Optional[str] = None) -> Dict[str, Any]:
        return cls.build_error_response(exc.code, exc.message, exc.details, request_id)


def _validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    return [
        {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]


class GlobalErrorHandler:
    """Exception handlers registered on the application"""

    @staticmethod
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        context = _request_context(request)
        # Client errors are expected traffic; only 5xx is logged as an error
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            f"Service error: {exc.code}",
            extra={
                **context,
                "error_code": exc.code,
                "error_message": exc.message,
                "status_code": exc.status_code,
                "details": exc.details
            }
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponseBuilder.from_service_error(exc, context["request_id"])
        )

    @staticmethod
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Request bodies and query parameters FastAPI could not parse"""
        context = _request_context(request)
        errors = _validation_errors(exc)
        logger.warning(
            f"Validation error: {len(errors)} errors",
            extra={**context, "validation_errors": errors}
        )

        return JSONResponse(
            status_code=422,
            content=ErrorResponseBuilder.build_error_response(
                error_code=ServiceErrorCode.INVALID_INPUT,
                message="Validation failed",
                details={"validation_errors": errors},
                request_id=context["request_id"]
            )
        )

    @staticmethod
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Anything that escaped the service layer"""
        context = _request_context(request)
        logger.error(
            f"Unexpected error: {type(exc).__name__}",
            extra={
                **context,
                "error_type": type(exc).__name__,
                "error_message": str(exc),
                "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            }
        )

        # Exception text stays out of responses unless debugging
        error = InternalError(f"Internal error: {exc}" if settings.DEBUG else None)

        return JSONResponse(
            status_code=error.status_code,
            content=ErrorResponseBuilder.from_service_error(error, context["request_id"])
        )


def unauthorized_response(
    challenges: list,
    error: Optional[UnauthorizedError] = None,
    request_id: Optional[str] = None
) -> JSONResponse:
    """401 response carrying one WWW-Authenticate header per configured scheme."""
    if error is None:
        error = UnauthorizedError("Authentication required")

    response = JSONResponse(
        status_code=401,
        content=ErrorResponseBuilder.build_error_response(error.code, error.message, request_id=request_id)
    )
    for challenge in challenges:
        response.headers.append("WWW-Authenticate", challenge)
    return response
