from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from webdav_gateway.core.exceptions.handler import GlobalErrorHandler


class RecoveryMiddleware(BaseHTTPMiddleware):
    """Outermost guard: any exception escaping the stack becomes a logged 500"""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return await GlobalErrorHandler.general_exception_handler(request, e)
