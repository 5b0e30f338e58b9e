import os
import re
from typing import List

from webdav_gateway.infra.config.config import AppConfig
from webdav_gateway.infra.crypto.password import MAX_PASSWORD_BYTES, PasswordHasher

MIN_JWT_SECRET_LENGTH = 32

_WALLET_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


class ConfigValidationError(ValueError):
    """Raised when a loaded configuration cannot be used to start the server"""

    def __init__(self, section: str, message: str):
        self.section = section
        super().__init__(f"{section} config: {message}")


class ConfigValidator:
    """Checks a merged AppConfig before the application is built"""

    def validate(self, config: AppConfig) -> AppConfig:
        self._validate_server(config)
        self._validate_webdav(config)
        self._validate_web3(config)
        self._validate_users(config)
        return config

    @staticmethod
    def _validate_server(config: AppConfig) -> None:
        server = config.server
        if not 1 <= server.port <= 65535:
            raise ConfigValidationError("server", "invalid port number")

        if server.tls:
            if not server.cert_file:
                raise ConfigValidationError("server", "cert_file is required when TLS is enabled")
            if not server.key_file:
                raise ConfigValidationError("server", "key_file is required when TLS is enabled")
            if not os.path.exists(server.cert_file):
                raise ConfigValidationError("server", f"cert file not found: {server.cert_file}")
            if not os.path.exists(server.key_file):
                raise ConfigValidationError("server", f"key file not found: {server.key_file}")

    @staticmethod
    def _validate_webdav(config: AppConfig) -> None:
        directory = config.webdav.directory
        if not directory:
            raise ConfigValidationError("webdav", "directory is required")
        if not os.path.exists(directory):
            raise ConfigValidationError("webdav", f"directory not found: {directory}")
        if not os.path.isdir(directory):
            raise ConfigValidationError("webdav", f"{directory} is not a directory")

    @staticmethod
    def _validate_web3(config: AppConfig) -> None:
        if not config.web3.enabled:
            return
        if not config.web3.jwt_secret:
            raise ConfigValidationError("web3", "jwt_secret is required when web3 is enabled")
        if len(config.web3.jwt_secret) < MIN_JWT_SECRET_LENGTH:
            raise ConfigValidationError(
                "web3", f"jwt_secret must be at least {MIN_JWT_SECRET_LENGTH} characters"
            )

    @staticmethod
    def _validate_users(config: AppConfig) -> None:
        if not config.users:
            raise ConfigValidationError("users", "at least one user is required")

        usernames: List[str] = []
        addresses: List[str] = []

        for i, user in enumerate(config.users):
            if not user.username:
                raise ConfigValidationError("users", f"user[{i}]: username is required")
            if user.username in usernames:
                raise ConfigValidationError("users", f"user[{i}]: duplicate username: {user.username}")
            usernames.append(user.username)

            if not user.password and not user.wallet_address and not config.security.no_password:
                raise ConfigValidationError("users", f"user[{i}]: must have password or wallet_address")

            if (
                user.password
                and not PasswordHasher.is_hashed(user.password)
                and len(user.password.encode("utf-8")) > MAX_PASSWORD_BYTES
            ):
                raise ConfigValidationError(
                    "users", f"user[{i}]: password exceeds {MAX_PASSWORD_BYTES} bytes"
                )

            if user.wallet_address:
                address = user.wallet_address.strip().lower()
                if not _WALLET_ADDRESS.match(address):
                    raise ConfigValidationError(
                        "users", f"user[{i}]: invalid wallet_address: {user.wallet_address}"
                    )
                if address in addresses:
                    raise ConfigValidationError(
                        "users", f"user[{i}]: duplicate wallet_address: {user.wallet_address}"
                    )
                addresses.append(address)

            if not user.directory:
                raise ConfigValidationError("users", f"user[{i}]: directory is required")

            for j, rule in enumerate(user.rules):
                if not rule.regex:
                    continue
                try:
                    re.compile(rule.path)
                except re.error as e:
                    raise ConfigValidationError(
                        "users", f"user[{i}].rules[{j}]: invalid pattern {rule.path!r}: {e}"
                    ) from e
