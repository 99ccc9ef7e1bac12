"""
Persistent configuration: known document directories and the active one.

The store is a plain JSON file at a platform-conventional location. It is
not locked; a concurrent writer in another process can race with us.
"""

import json
import logging
import os
import sys
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Union

from .errors import ConfigLoadError, ConfigSaveError


logger = logging.getLogger(__name__)

APP_NAME = "docu-mcp"
CONFIG_FILENAME = "config.json"
CONFIG_PATH_ENV = "DOCU_MCP_CONFIG"


def get_config_dir() -> Path:
    """Base configuration directory for this platform."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    return base / APP_NAME


def get_config_path() -> Path:
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / CONFIG_FILENAME


@dataclass
class Config:
    """Known directories (canonical, deduplicated) and the active directory."""
    directories: List[str] = field(default_factory=list)
    active_directory: Optional[str] = None

    def add_directory(self, directory: str) -> bool:
        """Append ``directory`` unless already known. Returns True if added."""
        if directory in self.directories:
            return False
        self.directories.append(directory)
        return True

    def to_dict(self) -> dict:
        return {
            "directories": list(self.directories),
            "active_directory": self.active_directory,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        if not isinstance(data, dict):
            raise ValueError("config must be a JSON object")

        directories = data.get("directories", [])
        if not isinstance(directories, list) or not all(
            isinstance(d, str) for d in directories
        ):
            raise ValueError("'directories' must be a list of strings")

        active = data.get("active_directory")
        if active is not None and not isinstance(active, str):
            raise ValueError("'active_directory' must be a string or null")

        return cls(directories=list(directories), active_directory=active)


class ConfigStore(ABC):
    """Load/save handle for :class:`Config`, passed to resolver and tools."""

    @abstractmethod
    def load(self) -> Config:
        """Load the config. A missing store yields a default Config."""
        pass

    @abstractmethod
    def save(self, config: Config) -> None:
        """Persist the config."""
        pass


class FileConfigStore(ConfigStore):
    """JSON file backed config store."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else get_config_path()

    def load(self) -> Config:
        if not self.path.exists():
            return Config()

        try:
            content = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigLoadError(f"Failed to read config file: {self.path}") from e

        try:
            return Config.from_dict(json.loads(content))
        except ValueError as e:
            raise ConfigLoadError(f"Failed to parse config file: {self.path}") from e

    def save(self, config: Config) -> None:
        parent = self.path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigSaveError(f"Failed to create config directory: {parent}") from e

        content = json.dumps(config.to_dict(), indent=2)

        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(parent), prefix=".config-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise ConfigSaveError(f"Failed to write config file: {self.path}") from e

        logger.debug("Saved config to %s", self.path)

    def __repr__(self) -> str:
        return f"FileConfigStore({str(self.path)!r})"
