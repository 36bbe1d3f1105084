"""
Centralized configuration for bootstrapcore.

Uses Pydantic BaseSettings for environment variable integration
and validation. All configurable values should be defined here.

Configuration sources (in order of precedence):
1. Explicit constructor arguments (including a YAML file via --config)
2. Environment variables (BOOTSTRAPCORE_*)
3. .env file
4. Default values

Example:
    from bootstrapcore.config import get_config

    config = get_config()
    print(config.sshd_config_path)  # From BOOTSTRAPCORE_SSHD_CONFIG_PATH or default

    # Override at runtime
    config = get_config(require_root=False)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bootstrapcore.errors import ConfigError
from bootstrapcore.timeouts import (
    APT_TIMEOUT_S,
    COMMAND_DEFAULT_TIMEOUT_S,
    HTTP_DOWNLOAD_TIMEOUT_S,
)

DEFAULT_UTILITIES = ["ufw", "nano", "bat", "logwatch", "fail2ban", "git", "bpytop"]

# Packages whose executable differs from the package name on Ubuntu
DEFAULT_UTILITY_COMMANDS = {
    "bat": "batcat",
    "fail2ban": "fail2ban-client",
}

DEFAULT_DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]


class BootstrapConfig(BaseSettings):
    """
    Central configuration for bootstrapcore.

    All settings can be overridden via environment variables
    prefixed with BOOTSTRAPCORE_.

    Example:
        export BOOTSTRAPCORE_REQUIRE_ROOT=false
        export BOOTSTRAPCORE_UTILITIES='["git", "nano"]'
    """

    model_config = SettingsConfigDict(
        env_prefix="BOOTSTRAPCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Privilege
    require_root: bool = Field(
        default=True,
        description="Abort the run unless the effective user is root",
    )

    # Packages
    apt_upgrade: bool = Field(
        default=True,
        description="Run apt-get upgrade after apt-get update",
    )
    utilities: List[str] = Field(
        default_factory=lambda: list(DEFAULT_UTILITIES),
        description="Utility packages installed by install-utilities",
    )
    utility_commands: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_UTILITY_COMMANDS),
        description="Executable probed for each utility package, when not the package name",
    )
    docker_packages: List[str] = Field(
        default_factory=lambda: list(DEFAULT_DOCKER_PACKAGES),
        description="Packages installed from the Docker apt repository",
    )

    # SSH
    sshd_config_path: str = Field(
        default="/etc/ssh/sshd_config",
        description="SSH daemon configuration file (edited in place, never created)",
    )
    sshd_directives: Dict[str, str] = Field(
        default_factory=lambda: {
            "PasswordAuthentication": "yes",
            "PubkeyAuthentication": "yes",
        },
        description="Directives enforced in sshd_config",
    )
    ssh_service: str = Field(
        default="ssh",
        description="systemd unit restarted after sshd_config changes",
    )
    restart_ssh_service: bool = Field(
        default=True,
        description="Restart the SSH service after editing sshd_config",
    )
    authorized_keys_path: str = Field(
        default="~/.ssh/authorized_keys",
        description="authorized_keys file the SSH key is appended to",
    )

    # Step selection
    skip_steps: List[str] = Field(
        default_factory=list,
        description="Step names never run",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        description="Logging level for bootstrapcore",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format (json for collectors, text for console)",
    )

    # Telemetry
    otlp_endpoint: Optional[str] = Field(
        default=None,
        description="OTLP gRPC endpoint for trace export (disabled when unset)",
    )
    service_name: str = Field(
        default="bootstrapcore",
        description="Service name for telemetry attribution",
    )

    # Timeouts
    command_timeout_s: int = Field(default=COMMAND_DEFAULT_TIMEOUT_S, ge=1)
    apt_timeout_s: int = Field(default=APT_TIMEOUT_S, ge=1)
    http_timeout_s: float = Field(default=HTTP_DOWNLOAD_TIMEOUT_S, gt=0)

    @field_validator("sshd_config_path", "authorized_keys_path")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ and environment variables in paths."""
        return os.path.expanduser(os.path.expandvars(v))

    @field_validator("otlp_endpoint")
    @classmethod
    def validate_endpoint(cls, v: Optional[str]) -> Optional[str]:
        """Strip the protocol prefix (the exporter adds its own)."""
        if not v:
            return None
        if v.startswith("http://"):
            v = v[7:]
        elif v.startswith("https://"):
            v = v[8:]
        return v

    def probe_command(self, package: str) -> str:
        """Executable that proves ``package`` is installed."""
        return self.utility_commands.get(package, package)


# Global singleton
_config: Optional[BootstrapConfig] = None


def get_config(**overrides) -> BootstrapConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        BootstrapConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = BootstrapConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


def load_config_file(path: str | Path) -> Dict[str, Any]:
    """
    Read a YAML mapping of config overrides.

    Keys use the field names of BootstrapConfig; dashes are accepted in
    place of underscores.

    Raises:
        ConfigError: unreadable file, invalid YAML, or not a mapping
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")

    overrides = {str(k).replace("-", "_"): v for k, v in data.items()}
    unknown = sorted(set(overrides) - set(BootstrapConfig.model_fields))
    if unknown:
        raise ConfigError(f"Unknown setting(s) in {path}: {', '.join(unknown)}")
    return overrides


def load_config(path: Optional[str | Path] = None, **overrides) -> BootstrapConfig:
    """Build the global config from an optional YAML file plus overrides."""
    values: Dict[str, Any] = {}
    if path is not None:
        values.update(load_config_file(path))
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return get_config(**values)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
