"""Append an SSH public key to an authorized_keys file."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Optional, Set

from bootstrapcore.errors import EmptyKeyError
from bootstrapcore.step import Step

logger = logging.getLogger(__name__)

KeyProvider = Callable[[], str]


class AddAuthorizedKey(Step):
    """
    Add one key line to authorized_keys if it is not there yet.

    The key comes from ``key_provider`` (a prompt in the CLI), asked at most
    once. Key material is not validated: any non-empty line is accepted.
    Membership is an exact match on the file's stripped lines.
    """

    name = "add-ssh-key"
    description = "Adding SSH key to authorized_keys"

    def __init__(self, path: Path, key_provider: KeyProvider):
        self.path = Path(path)
        self._key_provider = key_provider
        self._key: Optional[str] = None

    @property
    def key(self) -> str:
        if self._key is None:
            self._key = (self._key_provider() or "").strip()
        return self._key

    def _lines(self) -> Set[str]:
        if not self.path.exists():
            return set()
        return {line.strip() for line in self.path.read_text(encoding="utf-8").splitlines()}

    def check(self) -> bool:
        return bool(self.key) and self.key in self._lines()

    def apply(self) -> Optional[str]:
        key = self.key
        if not key:
            raise EmptyKeyError()

        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        if key in self._lines():
            return "SSH key already exists in authorized_keys"

        existing = self.path.read_text(encoding="utf-8") if self.path.exists() else ""
        with open(self.path, "a", encoding="utf-8") as f:
            if existing and not existing.endswith("\n"):
                f.write("\n")
            f.write(key + "\n")
        # New file is created with 644 permissions due to umask. Set proper permissions.
        os.chmod(self.path, 0o600)
        logger.info("Appended key to %s", self.path)
        return "SSH key added to authorized_keys"
