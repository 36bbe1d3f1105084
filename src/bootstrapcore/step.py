"""
Provisioning step interface.

A step is a named unit of work with a completion check and an apply
action. Steps must be idempotent: ``check()`` is side-effect free and
returns True once the work is done, and ``apply()`` is safe to call again
after a partial application.

Steps signal failure by raising. ``apply()`` may return a short detail
message describing what it did.
"""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from typing import Callable, Optional


class Step(metaclass=ABCMeta):
    """Base class for provisioning steps."""

    name: str = ""
    description: str = ""

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name!r}>"

    @property
    def label(self) -> str:
        """Human-readable narration for the step."""
        return self.description or self.name

    @abstractmethod
    def check(self) -> bool:
        """Return True if the step is already satisfied."""

    @abstractmethod
    def apply(self) -> Optional[str]:
        """Bring the host to the desired state. Raise on failure."""


class CallableStep(Step):
    """Step assembled from a check callable and an apply callable."""

    def __init__(
        self,
        name: str,
        check: Callable[[], bool],
        apply: Callable[[], Optional[str]],
        description: str = "",
    ):
        if not name:
            raise ValueError("Step name must not be empty")
        self.name = name
        self.description = description
        self._check = check
        self._apply = apply

    def check(self) -> bool:
        return bool(self._check())

    def apply(self) -> Optional[str]:
        return self._apply()
