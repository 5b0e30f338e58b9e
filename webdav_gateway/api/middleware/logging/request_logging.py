import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from webdav_gateway.core.logger.logger import get_logger

logger = get_logger(__name__)


def client_ip(request: Request, behind_proxy: bool = False) -> str:
    """Remote address; forwarding headers are trusted only behind a proxy"""
    if behind_proxy:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, behind_proxy: bool = False):
        super().__init__(app)
        self.behind_proxy = behind_proxy

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()

        # Get or generate correlation ID
        correlation_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = correlation_id

        log_context = {
            "request_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip(request, self.behind_proxy),
            "user_agent": request.headers.get("User-Agent", "")
        }

        try:
            response = await call_next(request)
        except Exception as e:
            log_context.update({
                "error": str(e),
                "error_type": e.__class__.__name__,
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 2)
            })
            logger.error("Request failed", extra=log_context)
            raise

        log_context.update({
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - start_time) * 1000, 2)
        })
        user = getattr(request.state, "user", None)
        if user is not None:
            log_context["username"] = user.username

        response.headers["X-Request-ID"] = correlation_id
        logger.info("Request completed", extra=log_context)
        return response
