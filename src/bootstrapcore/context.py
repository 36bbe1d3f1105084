"""Explicit run context: who is running and whether root is required."""

from __future__ import annotations

import getpass
import os

from pydantic import BaseModel, ConfigDict, Field


class RunContext(BaseModel):
    """Privilege and user information handed to the Runner."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    euid: int = Field(..., description="Effective user id of the run")
    user: str = ""
    require_privilege: bool = True

    @property
    def is_privileged(self) -> bool:
        return self.euid == 0

    @classmethod
    def from_environment(cls, require_privilege: bool = True) -> "RunContext":
        """Build a context for the current process."""
        # os.geteuid is POSIX-only; treat other platforms as unprivileged.
        euid = os.geteuid() if hasattr(os, "geteuid") else -1
        try:
            user = getpass.getuser()
        except (KeyError, OSError):
            user = str(euid)
        return cls(
            euid=euid,
            user=user,
            require_privilege=require_privilege,
        )
