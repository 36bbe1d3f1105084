"""
Exception hierarchy for bootstrapcore.

Two tiers:
- Fatal preconditions (``PrivilegeError``) abort the run before any step.
- Step errors (``StepError`` and subclasses) are raised inside a step's
  check/apply and recorded as failed results by the Runner.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from bootstrapcore.models import RunReport


class BootstrapError(Exception):
    """Base class for all bootstrapcore errors."""


class ConfigError(BootstrapError):
    """Raised when a configuration file cannot be loaded or validated."""


class DuplicateStepName(BootstrapError):
    """Raised when a step is registered under a name already in use."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Step already registered: {name!r}")


class UnknownStepName(BootstrapError):
    """Raised when a step selection names steps that are not registered."""

    def __init__(self, names: Sequence[str]):
        self.names = list(names)
        super().__init__(f"Unknown step(s): {', '.join(self.names)}")


class PrivilegeError(BootstrapError):
    """Raised when the run lacks root privilege. Carries the empty report."""

    def __init__(self, message: str, report: "RunReport"):
        self.report = report
        super().__init__(message)


class StepError(BootstrapError):
    """Expected failure inside a step body."""


class CommandError(StepError):
    """External command failed, timed out, or could not be started."""

    def __init__(
        self,
        cmd: Sequence[str],
        returncode: Optional[int],
        stdout: str = "",
        stderr: str = "",
        context: str = "",
    ):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []
        if self.context:
            parts.append(self.context)
        parts.append(f"Command: {' '.join(self.cmd)}")
        if self.returncode is not None:
            parts.append(f"Exit code: {self.returncode}")
        if self.stderr:
            parts.append(f"Error: {self.stderr.strip()}")
        if self.stdout and self.returncode:
            parts.append(f"Output: {self.stdout.strip()}")
        return "\n".join(parts)


class MissingCommandError(StepError):
    """A tool is still not on PATH after its install step ran."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"{command} not installed")


class ConfigFileNotFound(StepError):
    """A configuration file that must be edited in place does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path} not found")


class EmptyKeyError(StepError):
    """No SSH key material was supplied."""

    def __init__(self) -> None:
        super().__init__("No SSH key provided")
