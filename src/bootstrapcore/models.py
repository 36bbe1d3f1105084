"""
Result models for provisioning runs.

A ``StepResult`` is created once per executed step and never changes.
A ``RunReport`` is the ordered collection of results for one run, in
step declaration order.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StepOutcome(str, Enum):
    """Outcome of a single step execution."""
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class StepResult(BaseModel):
    """Outcome record for one step."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    step_name: str
    outcome: StepOutcome
    detail: str = ""
    duration_ms: float = Field(default=0.0, ge=0)

    @property
    def ok(self) -> bool:
        return self.outcome != StepOutcome.FAILED


class StepPlan(BaseModel):
    """Check-only evaluation of a step (no apply)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    step_name: str
    satisfied: Optional[bool] = Field(
        None, description="None when the check itself raised"
    )
    detail: str = ""


class RunReport(BaseModel):
    """Ordered per-step outcomes of one run."""

    model_config = ConfigDict(extra="forbid")

    results: List[StepResult] = Field(default_factory=list)

    @property
    def clean(self) -> bool:
        """True iff every step was skipped or succeeded."""
        return all(r.ok for r in self.results)

    @property
    def degraded(self) -> bool:
        return not self.clean

    @property
    def failed(self) -> List[StepResult]:
        return [r for r in self.results if r.outcome == StepOutcome.FAILED]

    @property
    def skipped(self) -> List[StepResult]:
        return [r for r in self.results if r.outcome == StepOutcome.SKIPPED]

    @property
    def succeeded(self) -> List[StepResult]:
        return [r for r in self.results if r.outcome == StepOutcome.SUCCEEDED]

    def get(self, step_name: str) -> Optional[StepResult]:
        for result in self.results:
            if result.step_name == step_name:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "clean": self.clean,
            "summary": {
                "total": len(self.results),
                "succeeded": len(self.succeeded),
                "skipped": len(self.skipped),
                "failed": len(self.failed),
            },
            "results": [r.model_dump(mode="json") for r in self.results],
        }
