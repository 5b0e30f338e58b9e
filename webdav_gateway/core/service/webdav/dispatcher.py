from abc import ABC, abstractmethod

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from webdav_gateway.core.exceptions.base import ServiceErrorCode
from webdav_gateway.core.exceptions.handler import ErrorResponseBuilder
from webdav_gateway.core.service.auth.models.user import User


class ProtocolDispatcher(ABC):
    """
    Executes WebDAV methods once a request has been authenticated and
    authorized. ``path`` is relative to the mount prefix.
    """

    @abstractmethod
    async def dispatch(self, request: Request, user: User, path: str) -> Response:
        ...

    @abstractmethod
    async def exists(self, user: User, path: str) -> bool:
        """Whether ``path`` already exists in the user's directory"""
        ...


class UnconfiguredDispatcher(ProtocolDispatcher):
    """Placeholder used until a real file backend is injected"""

    async def dispatch(self, request: Request, user: User, path: str) -> Response:
        return JSONResponse(
            status_code=501,
            content=ErrorResponseBuilder.build_error_response(
                error_code=ServiceErrorCode.NOT_IMPLEMENTED,
                message="No WebDAV backend is configured"
            )
        )

    async def exists(self, user: User, path: str) -> bool:
        return False
