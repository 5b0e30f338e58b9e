from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from webdav_gateway.core.service.webdav.access import ALLOWED_METHODS

DAV_COMPLIANCE = "1, 2"


class WebDAVMiddleware(BaseHTTPMiddleware):
    """Advertises WebDAV capabilities and answers OPTIONS itself"""

    def __init__(self, app, no_sniff: bool = True):
        super().__init__(app)
        self.no_sniff = no_sniff

    def _set_headers(self, response: Response) -> None:
        response.headers["DAV"] = DAV_COMPLIANCE
        response.headers["MS-Author-Via"] = "DAV"
        if self.no_sniff:
            response.headers["X-Content-Type-Options"] = "nosniff"

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            # Windows clients expect 200 here, not 204
            response = Response(status_code=200)
            response.headers["Allow"] = ", ".join(ALLOWED_METHODS)
            response.headers["Accept-Ranges"] = "bytes"
            self._set_headers(response)
            return response

        response = await call_next(request)
        self._set_headers(response)
        return response
