from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = "WebDAV Gateway"
    APP_VERSION: str = "2.0.0"
    DEBUG: bool = False

    # Config file (YAML) with server, webdav, web3, security, cors, log and users sections
    CONFIG_FILE: Optional[str] = None

    # Environment overrides applied on top of the config file
    WEBDAV_ADDRESS: Optional[str] = None
    WEBDAV_PORT: Optional[int] = None
    WEBDAV_JWT_SECRET: Optional[str] = None
    LOG_LEVEL: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
