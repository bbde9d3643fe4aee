"""Configuration management for HubKit."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .exceptions import ConfigError

logger = logging.getLogger(__name__)


class HubKitConfig(BaseModel):
    """Project configuration for HubKit."""

    primary_branch: Optional[str] = Field(
        default=None,
        description="Branch whose development alias is resolved (default: remote HEAD)",
    )
    remote: str = Field(
        default="upstream", description="Remote used for branch listing and sync"
    )
    manifest_file: str = Field(
        default="composer.json",
        description="Manifest file holding extra.branch-alias (relative to project root)",
    )
    git_timeout: Optional[float] = Field(
        default=None, description="Timeout in seconds for git commands"
    )

    @field_validator("primary_branch", "remote", "manifest_file")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class ConfigManager:
    """Manages configuration loading, saving, and validation."""

    DEFAULT_CONFIG_PATH = Path(".hubkit/config.json")

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH
        self._config: Optional[HubKitConfig] = None

    def load(self) -> HubKitConfig:
        """Load configuration from file, or the defaults when there is none."""
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    data = json.load(f)

                self._config = HubKitConfig(**data)
            except Exception as e:
                raise ConfigError(
                    f"Failed to load config from {self.config_path}: {e}"
                ) from e
        else:
            logger.debug(f"No config at {self.config_path}, using defaults")
            self._config = HubKitConfig()

        return self._config

    def save(self, config: Optional[HubKitConfig] = None) -> None:
        if config is None:
            config = self._config

        if config is None:
            raise ConfigError("No configuration to save")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, "w") as f:
            json.dump(config.model_dump(), f, indent=2)

        self._config = config

    def get_config(self) -> HubKitConfig:
        if self._config is None:
            return self.load()
        return self._config

    def update_config(self, **kwargs: Any) -> HubKitConfig:
        """Update configuration values, validate and persist them."""
        config_dict = self.get_config().model_dump()
        config_dict.update(kwargs)

        try:
            new_config = HubKitConfig(**config_dict)
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        self.save(new_config)
        return new_config

    @staticmethod
    def find_config_path(start_dir: Optional[Path] = None) -> Optional[Path]:
        """Find .hubkit/config.json by walking up the directory tree.

        Args:
            start_dir: Directory to start searching from (default: current directory)

        Returns:
            Path to config.json if found, None otherwise
        """
        current = (start_dir or Path.cwd()).resolve()

        for path in [current] + list(current.parents):
            config_path = path / ".hubkit" / "config.json"
            if config_path.exists():
                return config_path

        return None

    @classmethod
    def create_with_backtrack(cls, start_dir: Optional[Path] = None) -> "ConfigManager":
        """Create ConfigManager by finding config through directory backtracking.

        Falls back to ``<start_dir>/.hubkit/config.json`` when nothing is found.
        """
        config_path = cls.find_config_path(start_dir)
        if config_path is None:
            start = (start_dir or Path.cwd()).resolve()
            config_path = start / ".hubkit" / "config.json"
        return cls(config_path)
