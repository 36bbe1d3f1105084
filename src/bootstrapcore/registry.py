"""
Ordered registry of provisioning steps.

Registration order is the execution order. No dependency edges are
inferred; whoever registers steps orders prerequisites first.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional, Sequence

from bootstrapcore.errors import DuplicateStepName, UnknownStepName
from bootstrapcore.step import Step

logger = logging.getLogger(__name__)


class StepRegistry:
    """Name-unique, ordered sequence of steps."""

    def __init__(self, steps: Iterable[Step] = ()):
        self._steps: List[Step] = []
        self.extend(steps)

    def __repr__(self):
        return f"<{self.__class__.__name__} with {len(self._steps)} steps>"

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, name: object) -> bool:
        return any(step.name == name for step in self._steps)

    def register(self, step: Step) -> Step:
        """Append a step. Raises DuplicateStepName if the name is taken."""
        if step.name in self:
            raise DuplicateStepName(step.name)
        self._steps.append(step)
        logger.debug("Registered step %s", step.name)
        return step

    def extend(self, steps: Iterable[Step]) -> None:
        for step in steps:
            self.register(step)

    def sequence(self) -> List[Step]:
        """Steps in registration order."""
        return list(self._steps)

    def names(self) -> List[str]:
        return [step.name for step in self._steps]

    def get(self, name: str) -> Step:
        for step in self._steps:
            if step.name == name:
                return step
        raise UnknownStepName([name])

    def select(
        self,
        only: Optional[Sequence[str]] = None,
        skip: Optional[Sequence[str]] = None,
    ) -> "StepRegistry":
        """
        Return a new registry restricted to a subset of steps.

        Args:
            only: Keep only these steps (None keeps all)
            skip: Drop these steps

        Order is preserved. Any name not registered raises UnknownStepName.
        """
        only = list(only or [])
        skip = list(skip or [])
        unknown = [n for n in [*only, *skip] if n not in self]
        if unknown:
            raise UnknownStepName(unknown)
        return StepRegistry(
            step for step in self._steps
            if (not only or step.name in only) and step.name not in skip
        )
