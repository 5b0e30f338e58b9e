from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from webdav_gateway.core.logger.logger import get_logger
from webdav_gateway.infra.config.config import AppConfig
from webdav_gateway.infra.config.settings import Settings, get_settings
from webdav_gateway.infra.config.validator import ConfigValidationError, ConfigValidator

logger = get_logger(__name__)

# Command line override name -> (section, field)
OVERRIDE_FIELDS = {
    "address": ("server", "address"),
    "port": ("server", "port"),
    "tls": ("server", "tls"),
    "cert": ("server", "cert_file"),
    "key": ("server", "key_file"),
    "prefix": ("webdav", "prefix"),
    "directory": ("webdav", "directory"),
}


class ConfigLoader:
    """
    Builds the application configuration.

    Precedence, lowest to highest: defaults, YAML file, command line
    overrides, environment. The result is validated before it is returned.
    """

    def __init__(self, settings: Optional[Settings] = None, validator: Optional[ConfigValidator] = None):
        self.settings = settings or get_settings()
        self.validator = validator or ConfigValidator()

    def load(self, config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
        data: Dict[str, Any] = {}

        config_file = config_file or self.settings.CONFIG_FILE
        if config_file:
            data = self._load_file(config_file)

        self._apply_overrides(data, overrides or {})
        self._apply_env(data)

        try:
            config = AppConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigValidationError("config", str(e)) from e

        self.validator.validate(config)
        logger.info(
            "Configuration loaded",
            extra={
                "config_file": config_file,
                "users": len(config.users),
                "web3_enabled": config.web3.enabled
            }
        )
        return config

    @staticmethod
    def _load_file(config_file: str) -> Dict[str, Any]:
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigValidationError("config", f"failed to read {config_file}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigValidationError("config", f"failed to parse {config_file}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigValidationError("config", f"{config_file} must contain a mapping")
        return data

    @staticmethod
    def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
        section = data.get(name)
        if not isinstance(section, dict):
            section = {}
            data[name] = section
        return section

    def _apply_overrides(self, data: Dict[str, Any], overrides: Dict[str, Any]) -> None:
        for name, value in overrides.items():
            if value is None or name not in OVERRIDE_FIELDS:
                continue
            section, field = OVERRIDE_FIELDS[name]
            self._section(data, section)[field] = value

    def _apply_env(self, data: Dict[str, Any]) -> None:
        if self.settings.WEBDAV_ADDRESS:
            self._section(data, "server")["address"] = self.settings.WEBDAV_ADDRESS
        if self.settings.WEBDAV_PORT:
            self._section(data, "server")["port"] = self.settings.WEBDAV_PORT
        if self.settings.WEBDAV_JWT_SECRET:
            self._section(data, "web3")["jwt_secret"] = self.settings.WEBDAV_JWT_SECRET
        if self.settings.LOG_LEVEL:
            self._section(data, "log")["level"] = self.settings.LOG_LEVEL
