"""
sshd_config directive editing.

A directive is located by name whether commented out (``#Key`` or ``# Key``)
or active. The first match outside any ``Match`` block is rewritten to the
desired value, later active duplicates are dropped, and a missing directive
is inserted before the first ``Match`` block (or appended). Applying twice
changes nothing.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from bootstrapcore.errors import CommandError, ConfigFileNotFound
from bootstrapcore.files import atomic_write
from bootstrapcore.shell import command_exists, run_command
from bootstrapcore.step import Step
from bootstrapcore.timeouts import COMMAND_DEFAULT_TIMEOUT_S

logger = logging.getLogger(__name__)

_MATCH_BLOCK = re.compile(r"^\s*Match\s", re.IGNORECASE)


def _any_form(key: str) -> re.Pattern:
    return re.compile(rf"^\s*#?\s*{re.escape(key)}(\s|=|$)", re.IGNORECASE)


def _active_form(key: str) -> re.Pattern:
    return re.compile(rf"^\s*{re.escape(key)}(\s|=)\s*(?P<value>\S*)", re.IGNORECASE)


def directive_value(lines: Sequence[str], key: str) -> Optional[str]:
    """Value sshd would use for ``key`` (first active line outside Match blocks)."""
    active = _active_form(key)
    for line in lines:
        if _MATCH_BLOCK.match(line):
            break
        found = active.match(line)
        if found:
            return found.group("value")
    return None


def set_directive(lines: Sequence[str], key: str, value: str) -> List[str]:
    """Return ``lines`` with exactly one active ``key value`` line."""
    any_form = _any_form(key)
    active = _active_form(key)
    desired = f"{key} {value}"

    result: List[str] = []
    found = False
    match_block_at = None
    for line in lines:
        if match_block_at is None and _MATCH_BLOCK.match(line):
            match_block_at = len(result)
        if match_block_at is None and any_form.match(line):
            if not found:
                result.append(desired)
                found = True
                continue
            if active.match(line):
                continue
        result.append(line)

    if not found:
        if match_block_at is None:
            result.append(desired)
        else:
            result.insert(match_block_at, desired)
    return result


def set_directives(lines: Sequence[str], directives: Mapping[str, str]) -> List[str]:
    updated = list(lines)
    for key, value in directives.items():
        updated = set_directive(updated, key, value)
    return updated


class EnableSshAuthentication(Step):
    """Enforce sshd directives and restart the SSH service."""

    name = "enable-ssh-authentication"

    def __init__(
        self,
        path: Path,
        directives: Mapping[str, str],
        service: str = "ssh",
        restart: bool = True,
        validate: bool = True,
        timeout: float = COMMAND_DEFAULT_TIMEOUT_S,
    ):
        self.path = Path(path)
        self.directives = dict(directives)
        self.service = service
        self.restart = restart
        self.validate = validate
        self.timeout = timeout
        self.description = f"Enabling {' and '.join(self.directives)} in {self.path.name}"

    def _read_lines(self) -> List[str]:
        return self.path.read_text(encoding="utf-8").splitlines()

    def check(self) -> bool:
        if not self.path.is_file():
            return False
        lines = self._read_lines()
        return set_directives(lines, self.directives) == lines

    def apply(self) -> Optional[str]:
        if not self.path.is_file():
            raise ConfigFileNotFound(str(self.path))

        original = self.path.read_text(encoding="utf-8")
        lines = original.splitlines()
        updated = set_directives(lines, self.directives)
        if updated != lines:
            atomic_write(self.path, "\n".join(updated) + "\n", backup=True)
            for key, value in self.directives.items():
                previous = directive_value(lines, key)
                if previous != value:
                    logger.info("%s: %s -> %s in %s", key, previous or "unset", value, self.path)
            self._validate(original)

        settings = ", ".join(f"{k} {v}" for k, v in self.directives.items())
        if not self.restart:
            return f"{settings} set"
        run_command(
            ["systemctl", "restart", self.service], timeout=self.timeout,
            context=f"Restarting {self.service} service",
        )
        return f"{settings} set; {self.service} service restarted"

    def _validate(self, original: str) -> None:
        """Run ``sshd -t`` on the edited file; restore the original on rejection."""
        if not self.validate or not command_exists("sshd"):
            return
        try:
            run_command(
                ["sshd", "-t", "-f", str(self.path)], timeout=self.timeout,
                context="Validating sshd configuration",
            )
        except CommandError:
            atomic_write(self.path, original, backup=False)
            logger.error("sshd rejected %s; original restored", self.path)
            raise
