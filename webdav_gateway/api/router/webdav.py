"""
Protected WebDAV application mounted under the configured prefix.
"""

import posixpath
import re
from typing import List, Optional
from urllib.parse import unquote, urlsplit

from fastapi import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from webdav_gateway.api.middleware.authentication.auth_middleware import AuthMiddleware
from webdav_gateway.api.middleware.webdav.webdav import WebDAVMiddleware
from webdav_gateway.core.exceptions.base import ForbiddenError, UnauthorizedError
from webdav_gateway.core.logger.logger import get_logger
from webdav_gateway.core.service.auth.authenticators.base import Authenticator
from webdav_gateway.core.service.webdav.access import required_permissions
from webdav_gateway.core.service.webdav.dispatcher import ProtocolDispatcher

logger = get_logger(__name__)

_SLASHES = re.compile(r"/{2,}")


def normalize_prefix(prefix: str) -> str:
    """"" and "/" mount at the root; anything else becomes "/name" """
    prefix = (prefix or "").strip().strip("/")
    return "/" + prefix if prefix else ""


def canonical_path(path: str) -> str:
    """
    Collapse repeated slashes and resolve "." and ".." segments.

    The result is always absolute and never climbs above "/"; a trailing slash
    (collection) is kept.
    """
    cleaned = posixpath.normpath("/" + _SLASHES.sub("/", path or "/"))
    # normpath leaves a leading "//" alone
    cleaned = _SLASHES.sub("/", cleaned)
    if path.endswith("/") and cleaned != "/":
        cleaned += "/"
    return cleaned


def _strip_root(path: str, root_path: str) -> str:
    if root_path and path.startswith(root_path):
        path = path[len(root_path):]
    return canonical_path(path)


def resource_path(scope: Scope) -> str:
    """Request path relative to the mount point"""
    return _strip_root(scope.get("path", "/"), scope.get("root_path", ""))


def destination_path(request: Request) -> Optional[str]:
    """Path of the Destination header of COPY/MOVE, relative to the mount point"""
    destination = request.headers.get("Destination")
    if not destination:
        return None
    return _strip_root(unquote(urlsplit(destination).path), request.scope.get("root_path", ""))


class WebDAVEndpoint:
    """Checks the authenticated user's permissions, then hands off to the dispatcher"""

    def __init__(self, dispatcher: ProtocolDispatcher):
        self.dispatcher = dispatcher

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        user = getattr(request.state, "user", None)
        if user is None:
            raise UnauthorizedError("Authentication required")

        path = resource_path(scope)
        resource_exists = True
        if request.method == "PUT":
            resource_exists = await self.dispatcher.exists(user, path)

        checks = required_permissions(request.method, path, destination_path(request), resource_exists)
        for permission, target in checks:
            if not user.can_access(target, permission):
                logger.warning(
                    "Permission denied",
                    extra={
                        "username": user.username,
                        "method": request.method,
                        "path": target,
                        "permission": permission
                    }
                )
                raise ForbiddenError(
                    details={"path": target, "permission": permission}
                )

        response = await self.dispatcher.dispatch(request, user, path)
        await response(scope, receive, send)


def create_webdav_app(
    authenticators: List[Authenticator],
    dispatcher: ProtocolDispatcher,
    no_sniff: bool = True
) -> ASGIApp:
    """auth -> capability headers -> permission check + dispatcher"""
    return AuthMiddleware(
        WebDAVMiddleware(WebDAVEndpoint(dispatcher), no_sniff=no_sniff),
        authenticators=authenticators,
        passthrough_options=True
    )
