from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from webdav_gateway.api.controller.auth import web3_controller
from webdav_gateway.api.middleware.logging.request_logging import RequestLoggingMiddleware
from webdav_gateway.api.middleware.recovery.recovery import RecoveryMiddleware
from webdav_gateway.api.router import health
from webdav_gateway.api.router.webdav import create_webdav_app, normalize_prefix
from webdav_gateway.core.container import Container
from webdav_gateway.core.exceptions.handler import GlobalErrorHandler, ServiceError
from webdav_gateway.core.logger.logger import logger
from webdav_gateway.core.service.webdav.dispatcher import ProtocolDispatcher
from webdav_gateway.core.utils.clock import Clock
from webdav_gateway.infra.config.config import AppConfig
from webdav_gateway.infra.config.settings import settings
from webdav_gateway.infra.crypto.password import PasswordHasher


def create_app(
    config: AppConfig,
    dispatcher: Optional[ProtocolDispatcher] = None,
    clock: Optional[Clock] = None,
    password_hasher: Optional[PasswordHasher] = None
) -> FastAPI:
    container = Container(config, dispatcher=dispatcher, clock=clock, password_hasher=password_hasher)

    app = FastAPI(
        title=settings.APP_NAME,
        description="""
WebDAV gateway with username/password and Ethereum wallet authentication.

## Authentication
- **Basic**: `Authorization: Basic base64(username:password)`
- **Web3**: request a challenge, sign it with the wallet, exchange the
  signature for a token and send `Authorization: Bearer <token>`
        """,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.container = container
    app.state.config = config

    # Middleware added last runs first: recovery -> logging -> CORS
    if config.cors.enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors.allowed_origins,
            allow_credentials=config.cors.credentials,
            allow_methods=config.cors.allowed_methods,
            allow_headers=config.cors.allowed_headers,
            expose_headers=config.cors.exposed_headers,
            max_age=600,  # 10 minutes
        )

    app.add_middleware(RequestLoggingMiddleware, behind_proxy=config.security.behind_proxy)
    app.add_middleware(RecoveryMiddleware)

    app.add_exception_handler(ServiceError, GlobalErrorHandler.service_error_handler)
    app.add_exception_handler(RequestValidationError, GlobalErrorHandler.validation_error_handler)

    # Unauthenticated routes
    app.include_router(health.router)
    if container.web3_auth is not None:
        app.include_router(web3_controller.router)

    # Everything under the prefix requires authentication
    prefix = normalize_prefix(config.webdav.prefix)
    app.mount(
        prefix or "/",
        create_webdav_app(container.authenticators, container.dispatcher, no_sniff=config.webdav.no_sniff),
        name="webdav"
    )

    logger.info(
        "Application created",
        extra={
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "prefix": prefix or "/",
            "web3_enabled": config.web3.enabled,
            "cors_enabled": config.cors.enabled
        }
    )

    return app
