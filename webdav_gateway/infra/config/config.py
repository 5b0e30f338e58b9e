"""
Application configuration model.

Mirrors the YAML layout accepted by the gateway:

    server:   address, port, tls, cert_file, key_file, timeouts
    webdav:   prefix, directory, no_sniff, default permissions
    web3:     enabled, jwt_secret, token_expiration, challenge_ttl
    security: no_password, behind_proxy, bcrypt_rounds
    cors:     enabled, credentials, allowed_* lists
    log:      level, format
    users:    list of user entries with optional path rules
"""

import re
from datetime import timedelta
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: Union[str, int, float, timedelta]) -> Union[timedelta, str]:
    """Accept Go-style durations ("24h", "5m", "1h30m", "500ms") besides pydantic's own formats."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return timedelta(seconds=value)
    if not isinstance(value, str):
        return value

    text = value.strip().lower()
    if not text or _DURATION_PART.sub("", text):
        # Not a Go-style duration, let pydantic try ISO 8601 / HH:MM:SS
        return value

    seconds = sum(float(amount) * _DURATION_UNITS[unit] for amount, unit in _DURATION_PART.findall(text))
    return timedelta(seconds=seconds)


class ServerConfig(BaseModel):
    address: str = "0.0.0.0"
    port: int = 6065
    tls: bool = False
    cert_file: str = ""
    key_file: str = ""
    read_timeout: timedelta = timedelta(seconds=30)
    write_timeout: timedelta = timedelta(seconds=30)
    idle_timeout: timedelta = timedelta(seconds=60)
    shutdown_timeout: timedelta = timedelta(seconds=10)

    @field_validator("read_timeout", "write_timeout", "idle_timeout", "shutdown_timeout", mode="before")
    @classmethod
    def parse_durations(cls, value):
        return parse_duration(value)


class WebDAVConfig(BaseModel):
    prefix: str = "/"
    directory: str = "/data"
    no_sniff: bool = True
    permissions: str = "R"


class Web3Config(BaseModel):
    enabled: bool = False
    jwt_secret: str = ""
    token_expiration: timedelta = timedelta(hours=24)
    challenge_ttl: timedelta = timedelta(minutes=5)

    @field_validator("token_expiration", "challenge_ttl", mode="before")
    @classmethod
    def parse_durations(cls, value):
        return parse_duration(value)


class SecurityConfig(BaseModel):
    no_password: bool = False
    behind_proxy: bool = False
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)


class CORSConfig(BaseModel):
    enabled: bool = False
    credentials: bool = False
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])
    allowed_methods: List[str] = Field(default_factory=lambda: ["*"])
    allowed_headers: List[str] = Field(default_factory=lambda: ["*"])
    exposed_headers: List[str] = Field(default_factory=list)


class LogConfig(BaseModel):
    level: str = "info"
    format: str = "json"  # json or console


class RuleConfig(BaseModel):
    path: str
    permissions: str = ""
    regex: bool = False


class UserConfig(BaseModel):
    username: str = ""
    password: str = ""
    wallet_address: str = ""
    directory: str = ""
    permissions: str = ""
    rules: List[RuleConfig] = Field(default_factory=list)


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    webdav: WebDAVConfig = Field(default_factory=WebDAVConfig)
    web3: Web3Config = Field(default_factory=Web3Config)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    cors: CORSConfig = Field(default_factory=CORSConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    users: List[UserConfig] = Field(default_factory=list)

    @field_validator("users", mode="before")
    @classmethod
    def none_users(cls, value: Optional[list]) -> list:
        # "users:" with no entries parses as None
        return value or []
