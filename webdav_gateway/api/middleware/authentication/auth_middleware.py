from typing import List, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from webdav_gateway.core.exceptions.base import ExpiredError, UnauthorizedError
from webdav_gateway.core.exceptions.handler import unauthorized_response
from webdav_gateway.core.logger.logger import get_logger
from webdav_gateway.core.service.auth.authenticators.base import Authenticator

logger = get_logger(__name__)


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Resolves the caller to a User before the WebDAV handler runs.

    Authenticators are tried in order and the first one returning a user
    wins. When all of them decline or fail the response is a 401 listing
    every configured scheme. With ``passthrough_options`` an OPTIONS request
    skips authentication entirely.
    """

    def __init__(self, app, authenticators: List[Authenticator], passthrough_options: bool = True):
        super().__init__(app)
        self.authenticators = list(authenticators)
        self.passthrough_options = passthrough_options

    async def dispatch(self, request: Request, call_next) -> Response:
        if self.passthrough_options and request.method == "OPTIONS":
            return await call_next(request)

        last_error: Optional[UnauthorizedError] = None

        for authenticator in self.authenticators:
            try:
                user = await authenticator.authenticate(request)
            except UnauthorizedError as e:
                last_error = e
                logger.warning(
                    "Authentication failed",
                    extra={
                        "authenticator": authenticator.name,
                        "error_code": e.code,
                        "path": request.url.path,
                        "method": request.method
                    }
                )
                continue

            if user is not None:
                request.state.user = user
                logger.debug(
                    "Authenticated",
                    extra={"authenticator": authenticator.name, "username": user.username}
                )
                return await call_next(request)

        return unauthorized_response(
            [authenticator.challenge() for authenticator in self.authenticators],
            error=last_error if isinstance(last_error, ExpiredError) else None,
            request_id=getattr(request.state, "request_id", None)
        )
