"""
Step catalog for bootstrapping a fresh Ubuntu server.

Public API::

    from bootstrapcore.steps import build_default_steps

    registry = build_default_steps(config, key_provider=lambda: key)
"""

from __future__ import annotations

from pathlib import Path

from bootstrapcore.config import BootstrapConfig
from bootstrapcore.registry import StepRegistry
from bootstrapcore.steps.authorized_keys import AddAuthorizedKey, KeyProvider
from bootstrapcore.steps.packages import (
    DOCKER_REPOSITORY,
    GITHUB_CLI_REPOSITORY,
    AptRepository,
    InstallFromRepository,
    InstallPackages,
    UpdatePackages,
    add_apt_repository,
)
from bootstrapcore.steps.sshd import (
    EnableSshAuthentication,
    directive_value,
    set_directive,
    set_directives,
)

__all__ = [
    "AddAuthorizedKey",
    "AptRepository",
    "DOCKER_REPOSITORY",
    "EnableSshAuthentication",
    "GITHUB_CLI_REPOSITORY",
    "InstallFromRepository",
    "InstallPackages",
    "KeyProvider",
    "UpdatePackages",
    "add_apt_repository",
    "build_default_steps",
    "directive_value",
    "set_directive",
    "set_directives",
]


def build_default_steps(config: BootstrapConfig, key_provider: KeyProvider) -> StepRegistry:
    """Build the bootstrap sequence in execution order."""
    registry = StepRegistry()
    registry.register(UpdatePackages(upgrade=config.apt_upgrade, timeout=config.apt_timeout_s))
    registry.register(InstallFromRepository(
        name="install-gh",
        description="Installing gh",
        repository=GITHUB_CLI_REPOSITORY,
        packages=["gh"],
        command="gh",
        apt_timeout=config.apt_timeout_s,
        http_timeout=config.http_timeout_s,
        command_timeout=config.command_timeout_s,
    ))
    registry.register(InstallFromRepository(
        name="install-docker",
        description="Installing Docker",
        repository=DOCKER_REPOSITORY,
        packages=config.docker_packages,
        command="docker",
        prerequisites=["ca-certificates"],
        apt_timeout=config.apt_timeout_s,
        http_timeout=config.http_timeout_s,
        command_timeout=config.command_timeout_s,
    ))
    registry.register(InstallPackages(
        name="install-utilities",
        description="Installing utilities",
        packages=config.utilities,
        commands=[config.probe_command(p) for p in config.utilities],
        timeout=config.apt_timeout_s,
    ))
    registry.register(AddAuthorizedKey(Path(config.authorized_keys_path), key_provider))
    registry.register(EnableSshAuthentication(
        path=Path(config.sshd_config_path),
        directives=config.sshd_directives,
        service=config.ssh_service,
        restart=config.restart_ssh_service,
        timeout=config.command_timeout_s,
    ))
    return registry
