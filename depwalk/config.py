"""Configuration settings for depwalk."""

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Optional, Union

from .depwalk import APP_DIRS
from .sources import is_known_source, sources

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"
USER_CONFIG_PATH = Path(APP_DIRS.user_config_dir) / CONFIG_FILENAME


class ConfigError(ValueError):
    """Raised when the configuration file is missing, unreadable, or invalid"""


@dataclass
class Config:
    package_name: str
    repo_url: str
    repo_mode: str

    def validate(self) -> "Config":
        if not isinstance(self.package_name, str) or not self.package_name:
            raise ConfigError("package_name must be a non-empty string")
        if not isinstance(self.repo_url, str) or not self.repo_url:
            raise ConfigError("repo_url must be a non-empty string")
        if not isinstance(self.repo_mode, str) or not is_known_source(self.repo_mode):
            modes = ", ".join(sorted(f"'{s.name}'" for s in sources()))
            raise ConfigError(f"repo_mode must be one of {modes}, got: {self.repo_mode!r}")
        return self

    @classmethod
    def from_obj(cls, obj) -> "Config":
        if not isinstance(obj, dict):
            raise ConfigError(f"Expected the configuration to be a JSON object, got {type(obj).__name__}")
        return cls(
            package_name=obj.get("package_name", ""),
            repo_url=obj.get("repo_url", ""),
            repo_mode=obj.get("repo_mode", ""),
        ).validate()


def default_config_path() -> Path:
    """The config file in the working directory, or else the one in the user's config directory"""
    local = Path(CONFIG_FILENAME)
    if not local.exists() and USER_CONFIG_PATH.exists():
        return USER_CONFIG_PATH
    return local


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    if path is None:
        path = default_config_path()
    path = Path(path)
    logger.debug(f"Loading configuration from {path!s}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
    except OSError as e:
        raise ConfigError(f"Error reading configuration {path!s}: {e.strerror or e!s}") from e
    except ValueError as e:
        raise ConfigError(f"Error parsing configuration {path!s}: {e!s}") from e
    try:
        return Config.from_obj(obj)
    except ConfigError as e:
        raise ConfigError(f"Invalid configuration {path!s}: {e!s}") from e
