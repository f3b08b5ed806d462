"""Configuration management for deno-sv.

Loads configuration from:
1. deno-sv.toml (defaults)
2. Environment variables (overrides)
"""

import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

from denosv import __version__
from provisioning.fetcher import DEFAULT_REGISTRY_URL, BundleReference
from provisioning.installer import DEFAULT_INSTALL_COMMAND

# Load .env file if present
load_dotenv()

CONFIG_FILENAME = "deno-sv.toml"


class ConfigError(Exception):
    """Raised when deno-sv.toml cannot be read or holds invalid settings."""

    pass


@dataclass
class BundleConfig:
    """Template bundle location and download settings."""

    registry_url: str = DEFAULT_REGISTRY_URL
    scope: str = "@deno-sv"
    name: str = "templates"
    version: str = __version__  # Bundles are released in lockstep with the CLI
    sha256: str = ""  # Optional checksum of the tarball
    template_subdir: str = "package/templates"  # Template root inside the tarball
    timeout: int = 60
    chunk_size: int = 64 * 1024


@dataclass
class InstallConfig:
    """Package manager settings."""

    enabled: bool = True
    command: list[str] = field(default_factory=lambda: list(DEFAULT_INSTALL_COMMAND))
    dev_flag: str = "-D"
    timeout: int = 300


@dataclass
class Config:
    """Main configuration container."""

    bundle: BundleConfig = field(default_factory=BundleConfig)
    install: InstallConfig = field(default_factory=InstallConfig)
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary.

        Raises:
            ConfigError: If a section is not a table or has unknown keys.
        """
        bundle_data = _section(data, "bundle", BundleConfig)
        install_data = _section(data, "install", InstallConfig)

        return cls(
            bundle=BundleConfig(**bundle_data),
            install=InstallConfig(**install_data),
            log_level=data.get("log_level", "WARNING"),
        )

    def bundle_reference(self) -> BundleReference:
        """Bundle to fetch for this configuration."""
        return BundleReference(
            registry_url=self.bundle.registry_url,
            scope=self.bundle.scope,
            name=self.bundle.name,
            version=self.bundle.version,
            sha256=self.bundle.sha256,
        )


def find_config_file() -> Path | None:
    """Find deno-sv.toml in current or parent directories.

    Returns:
        Path to deno-sv.toml or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / CONFIG_FILENAME
        if config_path.exists():
            return config_path

    return None


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to deno-sv.toml

    Returns:
        Config object with merged settings.

    Raises:
        ConfigError: If the file cannot be read or parsed, or holds invalid settings.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            try:
                with open(path, "rb") as f:
                    config_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"Invalid {path.name}: {e}") from e
            except OSError as e:
                raise ConfigError(f"Cannot read {path}: {e.strerror or e}") from e

    env_overrides = {
        "bundle": {
            "registry_url": os.getenv("DENO_SV_REGISTRY_URL"),
            "scope": os.getenv("DENO_SV_BUNDLE_SCOPE"),
            "name": os.getenv("DENO_SV_BUNDLE_NAME"),
            "version": os.getenv("DENO_SV_BUNDLE_VERSION"),
            "sha256": os.getenv("DENO_SV_BUNDLE_SHA256"),
            "timeout": _int_or_none(os.getenv("DENO_SV_FETCH_TIMEOUT")),
        },
        "install": {
            "timeout": _int_or_none(os.getenv("DENO_SV_INSTALL_TIMEOUT")),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        elif not isinstance(config_data[section], dict):
            raise ConfigError(f"[{section}] must be a table")
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        config_data["log_level"] = log_level

    return Config.from_dict(config_data)


def _int_or_none(value: str | None) -> int | None:
    """Convert string to int, or return None."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _section(data: dict[str, Any], name: str, section_cls: type) -> dict[str, Any]:
    """Return a config section, rejecting keys the dataclass does not define."""
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table")
    unknown = sorted(set(section) - {f.name for f in fields(section_cls)})
    if unknown:
        raise ConfigError(f"Unknown setting in [{name}]: {', '.join(unknown)}")
    return section
