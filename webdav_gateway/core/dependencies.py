"""
FastAPI dependency injection functions.
Every dependency resolves through the Container stored on the application.
"""

from fastapi import Depends, Request

from webdav_gateway.core.container import Container
from webdav_gateway.core.exceptions.base import NotFoundError
from webdav_gateway.core.service.auth.authenticators.web3 import Web3Authenticator
from webdav_gateway.infra.repository.memory_user_repository import MemoryUserRepository


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_user_repository(container: Container = Depends(get_container)) -> MemoryUserRepository:
    return container.user_repository


def get_web3_authenticator(container: Container = Depends(get_container)) -> Web3Authenticator:
    if container.web3_auth is None:
        raise NotFoundError("Web3 authentication is disabled")
    return container.web3_auth
