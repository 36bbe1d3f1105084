"""
apt-based steps: index update, utility packages and third-party repositories.

Installs are verified by probing for the expected executable afterwards,
so a step only succeeds when the tool is actually usable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from bootstrapcore.errors import MissingCommandError, StepError
from bootstrapcore.files import atomic_write, read_os_release
from bootstrapcore.shell import APT_ENV, command_exists, fetch, run_command
from bootstrapcore.step import Step
from bootstrapcore.timeouts import (
    APT_TIMEOUT_S,
    COMMAND_DEFAULT_TIMEOUT_S,
    HTTP_DOWNLOAD_TIMEOUT_S,
)

logger = logging.getLogger(__name__)

SOURCES_DIR = Path("/etc/apt/sources.list.d")
OS_RELEASE = Path("/etc/os-release")

# Keep locally modified conffiles instead of asking about them.
DPKG_OPTIONS = (
    "-o", "Dpkg::Options::=--force-confdef",
    "-o", "Dpkg::Options::=--force-confold",
)


def apt_update(timeout: float = APT_TIMEOUT_S) -> None:
    run_command(
        ["apt-get", "update"], env=APT_ENV, timeout=timeout,
        context="Updating package index",
    )


def apt_install(packages: Sequence[str], timeout: float = APT_TIMEOUT_S) -> None:
    run_command(
        ["apt-get", "install", "-y", *DPKG_OPTIONS, *packages], env=APT_ENV, timeout=timeout,
        context=f"Installing {', '.join(packages)}",
    )


def _require_commands(commands: Sequence[str]) -> None:
    missing = [c for c in commands if not command_exists(c)]
    if missing:
        raise MissingCommandError(", ".join(missing))


class UpdatePackages(Step):
    """apt-get update, then apt-get upgrade. Always runs."""

    name = "update-packages"
    description = "Updating and upgrading apt"

    def __init__(self, upgrade: bool = True, timeout: float = APT_TIMEOUT_S):
        self.upgrade = upgrade
        self.timeout = timeout

    def check(self) -> bool:
        return False

    def apply(self) -> Optional[str]:
        apt_update(self.timeout)
        if not self.upgrade:
            return "apt updated"
        run_command(
            ["apt-get", "upgrade", "-y", *DPKG_OPTIONS], env=APT_ENV, timeout=self.timeout,
            context="Upgrading packages",
        )
        return "apt updated and upgraded"


class InstallPackages(Step):
    """Install distribution packages; satisfied when every probe command exists."""

    def __init__(
        self,
        name: str,
        packages: Sequence[str],
        commands: Optional[Sequence[str]] = None,
        description: str = "",
        timeout: float = APT_TIMEOUT_S,
    ):
        self.name = name
        self.description = description
        self.packages = list(packages)
        self.commands = list(commands if commands is not None else packages)
        self.timeout = timeout

    def check(self) -> bool:
        return all(command_exists(c) for c in self.commands)

    def apply(self) -> Optional[str]:
        apt_install(self.packages, self.timeout)
        _require_commands(self.commands)
        return f"installed {', '.join(self.packages)}"


@dataclass(frozen=True)
class AptRepository:
    """A signed third-party apt source."""

    name: str
    key_url: str
    keyring_path: Path
    url: str
    suite: str
    components: str = "main"
    sources_dir: Path = SOURCES_DIR

    @property
    def list_path(self) -> Path:
        return self.sources_dir / f"{self.name}.list"

    @property
    def needs_codename(self) -> bool:
        return "{codename}" in self.suite

    def source_line(self, arch: str, codename: str = "") -> str:
        suite = self.suite.format(codename=codename)
        return (
            f"deb [arch={arch} signed-by={self.keyring_path}] "
            f"{self.url} {suite} {self.components}\n"
        )


GITHUB_CLI_REPOSITORY = AptRepository(
    name="github-cli",
    key_url="https://cli.github.com/packages/githubcli-archive-keyring.gpg",
    keyring_path=Path("/usr/share/keyrings/githubcli-archive-keyring.gpg"),
    url="https://cli.github.com/packages",
    suite="stable",
)

DOCKER_REPOSITORY = AptRepository(
    name="docker",
    key_url="https://download.docker.com/linux/ubuntu/gpg",
    keyring_path=Path("/etc/apt/keyrings/docker.asc"),
    url="https://download.docker.com/linux/ubuntu",
    suite="{codename}",
    components="stable",
)


def add_apt_repository(
    repository: AptRepository,
    http_timeout: float = HTTP_DOWNLOAD_TIMEOUT_S,
    command_timeout: float = COMMAND_DEFAULT_TIMEOUT_S,
    os_release: Path = OS_RELEASE,
) -> None:
    """Install the signing key and the source list. Rewrites both on every call."""
    key = fetch(repository.key_url, timeout=http_timeout)
    repository.keyring_path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
    atomic_write(repository.keyring_path, key, backup=False, mode=0o644)

    arch = run_command(
        ["dpkg", "--print-architecture"], timeout=command_timeout,
        context="Detecting package architecture",
    ).stdout.strip()

    codename = ""
    if repository.needs_codename:
        codename = read_os_release(os_release).get("VERSION_CODENAME", "")
        if not codename:
            raise StepError(f"VERSION_CODENAME missing from {os_release}")

    atomic_write(
        repository.list_path,
        repository.source_line(arch, codename),
        backup=False,
        mode=0o644,
    )
    logger.info("Added apt source %s", repository.list_path)


class InstallFromRepository(Step):
    """Install packages from a third-party apt repository."""

    def __init__(
        self,
        name: str,
        repository: AptRepository,
        packages: Sequence[str],
        command: str,
        prerequisites: Sequence[str] = (),
        description: str = "",
        apt_timeout: float = APT_TIMEOUT_S,
        http_timeout: float = HTTP_DOWNLOAD_TIMEOUT_S,
        command_timeout: float = COMMAND_DEFAULT_TIMEOUT_S,
        os_release: Path = OS_RELEASE,
    ):
        self.name = name
        self.description = description
        self.repository = repository
        self.packages = list(packages)
        self.command = command
        self.prerequisites = list(prerequisites)
        self.apt_timeout = apt_timeout
        self.http_timeout = http_timeout
        self.command_timeout = command_timeout
        self.os_release = os_release

    def check(self) -> bool:
        return command_exists(self.command)

    def apply(self) -> Optional[str]:
        logger.info("%s not found. Installing...", self.command)
        if self.prerequisites:
            apt_install(self.prerequisites, self.apt_timeout)
        add_apt_repository(
            self.repository,
            http_timeout=self.http_timeout,
            command_timeout=self.command_timeout,
            os_release=self.os_release,
        )
        apt_update(self.apt_timeout)
        apt_install(self.packages, self.apt_timeout)
        _require_commands([self.command])
        return f"{self.command} installed"
