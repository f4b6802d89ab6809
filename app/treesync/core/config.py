"""Sync profile configuration.

This module provides the configuration models and the functions for
loading and saving named synchronization profiles in TOML format with
validation using Pydantic models.

Configuration is stored in ~/.config/treesync/config.toml:

    [profiles.docs]
    source = { type = "local", dir = "/home/me/docs" }
    target = { type = "local", dir = "/mnt/backup/docs" }
    exclude = ["*.log", "!keep.log"]
    max_workers = 4
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from treesync.core.paths import get_config_path
from treesync.locations import LocationType

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when config content is invalid."""


class ProfileNotFoundError(ConfigError):
    """Raised when a named profile is not defined."""


class LocationSettings(BaseModel):
    """Settings for one side of a synchronization.

    Attributes:
        type: Backend to use.
        dir: Root directory (local backend).
        root: Store name (memory backend).
    """

    model_config = ConfigDict(extra="forbid")

    type: Annotated[
        LocationType,
        Field(description="Location backend"),
    ] = LocationType.LOCAL
    dir: Annotated[
        str | None,
        Field(description="Root directory of a local location"),
    ] = None
    root: Annotated[
        str | None,
        Field(description="Name of an in-memory store"),
    ] = None

    @model_validator(mode="after")
    def validate_backend_settings(self) -> LocationSettings:
        """Ensure local locations name their root directory."""
        if self.type == LocationType.LOCAL and not self.dir:
            msg = "Local locations require a 'dir' setting"
            raise ValueError(msg)
        return self

    def to_settings(self) -> dict[str, str]:
        """Convert to the settings mapping accepted by create_location."""
        return {
            key: value.value if isinstance(value, LocationType) else value
            for key, value in self.model_dump().items()
            if value is not None
        }


class SyncProfile(BaseModel):
    """A named source/target pair with its synchronization options.

    Attributes:
        source: Location holding the desired state.
        target: Location to reconcile.
        exclude: Ordered exclude patterns ("!" prefix re-includes).
        max_workers: Number of concurrent workers used when executing.
    """

    model_config = ConfigDict(extra="forbid")

    source: LocationSettings
    target: LocationSettings
    exclude: list[str] = Field(default_factory=list, description="Ordered exclude patterns")
    max_workers: Annotated[
        int,
        Field(ge=1, le=64, description="Concurrent workers (1-64)"),
    ] = 1

    def source_settings(self) -> dict[str, str]:
        """Settings mapping for the source location."""
        return self.source.to_settings()

    def target_settings(self) -> dict[str, str]:
        """Settings mapping for the target location."""
        return self.target.to_settings()


class SyncConfig(BaseModel):
    """Root configuration model.

    Attributes:
        profiles: Sync profiles keyed by name.
    """

    model_config = ConfigDict(extra="forbid")

    profiles: dict[str, SyncProfile] = Field(default_factory=dict)

    def get_profile(self, name: str) -> SyncProfile:
        """Look up a profile by name.

        Args:
            name: Profile name.

        Returns:
            The matching SyncProfile.

        Raises:
            ProfileNotFoundError: If no profile has that name.
        """
        try:
            return self.profiles[name]
        except KeyError as e:
            available = ", ".join(sorted(self.profiles)) or "none"
            msg = f"Profile '{name}' not found (available: {available})"
            raise ProfileNotFoundError(msg) from e


def load_config(path: Path | None = None) -> SyncConfig:
    """Load and validate the configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated SyncConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        config = SyncConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid config content: {e}") from e

    logger.debug("Loaded %d profile(s) from %s", len(config.profiles), config_path)
    return config


def save_config(config: SyncConfig, path: Path | None = None) -> Path:
    """Save the configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The SyncConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def _config_to_dict(config: SyncConfig) -> dict[str, Any]:
    """Convert SyncConfig to a dictionary for TOML serialization.

    None values are dropped since TOML has no null.
    """
    profiles: dict[str, Any] = {}
    for name, profile in config.profiles.items():
        entry: dict[str, Any] = {
            "source": profile.source_settings(),
            "target": profile.target_settings(),
        }
        if profile.exclude:
            entry["exclude"] = list(profile.exclude)
        if profile.max_workers != 1:
            entry["max_workers"] = profile.max_workers
        profiles[name] = entry
    return {"profiles": profiles}
