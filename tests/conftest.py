"""
Pytest configuration and fixtures for bootstrapcore tests.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Generator, List

import pytest

from bootstrapcore.config import reset_config
from bootstrapcore.context import RunContext
from bootstrapcore.models import RunReport, StepResult
from bootstrapcore.reporter import Reporter
from bootstrapcore.step import Step


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_config(monkeypatch) -> Generator[None, None, None]:
    """Fresh config per test, unaffected by the developer's environment."""
    for key in list(os.environ):
        if key.startswith("BOOTSTRAPCORE_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()
    root = logging.getLogger("bootstrapcore")
    for handler in list(root.handlers):
        if getattr(handler, "_bootstrapcore", False):
            root.removeHandler(handler)


@pytest.fixture
def root_context() -> RunContext:
    return RunContext(euid=0, user="root")


@pytest.fixture
def user_context() -> RunContext:
    return RunContext(euid=1000, user="ubuntu")


# ============================================================================
# Step / Reporter Doubles
# ============================================================================


class RecordingStep(Step):
    """Step that records calls; becomes satisfied after a successful apply."""

    def __init__(self, name: str, satisfied: bool = False, fail_apply: bool = False,
                 fail_check: bool = False):
        self.name = name
        self.description = f"Running {name}"
        self.satisfied = satisfied
        self.fail_apply = fail_apply
        self.fail_check = fail_check
        self.check_calls = 0
        self.apply_calls = 0

    def check(self) -> bool:
        self.check_calls += 1
        if self.fail_check:
            raise RuntimeError(f"{self.name} check exploded")
        return self.satisfied

    def apply(self):
        self.apply_calls += 1
        if self.fail_apply:
            raise RuntimeError(f"{self.name} apply exploded")
        self.satisfied = True
        return f"{self.name} done"


class RecordingReporter(Reporter):
    """Reporter that keeps every event in order."""

    def __init__(self):
        self.events: List[tuple] = []

    def _on_info(self, message: str) -> None:
        self.events.append(("info", message))

    def _on_error(self, message: str) -> None:
        self.events.append(("error", message))

    def _on_step_started(self, step: Step) -> None:
        self.events.append(("started", step.name))

    def _on_report(self, result: StepResult) -> None:
        self.events.append(("result", result.step_name, result.outcome.value))

    def _on_summary(self, report: RunReport) -> None:
        self.events.append(("summary", report.clean))


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def make_step():
    return RecordingStep


# ============================================================================
# File Fixtures
# ============================================================================


UBUNTU_SSHD_CONFIG = """\
# This is the sshd server system-wide configuration file.

Include /etc/ssh/sshd_config.d/*.conf

#Port 22
#PermitRootLogin prohibit-password
#PubkeyAuthentication yes

# To disable tunneled clear text passwords, change to no here!
#PasswordAuthentication no
#PermitEmptyPasswords no

KbdInteractiveAuthentication no
UsePAM yes
X11Forwarding yes

Subsystem sftp /usr/lib/openssh/sftp-server

# Example of overriding settings on a per-user basis
#Match User anoncvs
#\tX11Forwarding no
"""


@pytest.fixture
def sshd_config(tmp_path) -> Path:
    path = tmp_path / "sshd_config"
    path.write_text(UBUNTU_SSHD_CONFIG)
    return path


@pytest.fixture
def authorized_keys(tmp_path) -> Path:
    return tmp_path / "home" / ".ssh" / "authorized_keys"
