"""
Step runner: idempotent skip, continue on failure.

For each step in declaration order the Runner evaluates ``check()``;
satisfied steps are skipped, the rest are applied. Any exception raised by
a step's check or apply becomes a failed result and the run moves on to
the next step. The full report is always returned.

The only fatal condition is the privilege precondition, evaluated once
before the first step.

Usage:
    from bootstrapcore.runner import Runner

    runner = Runner(RunContext.from_environment(), reporter=ConsoleReporter())
    report = runner.run(registry)
    sys.exit(0 if report.clean else 1)
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional

from bootstrapcore.context import RunContext
from bootstrapcore.errors import PrivilegeError
from bootstrapcore.models import RunReport, StepOutcome, StepPlan, StepResult
from bootstrapcore.reporter import Reporter
from bootstrapcore.step import Step
from bootstrapcore.telemetry import get_tracer, record_step_result

logger = logging.getLogger(__name__)


def _describe(exc: BaseException) -> str:
    message = str(exc)
    return message if message else type(exc).__name__


class Runner:
    """Executes a step sequence and collects a RunReport."""

    def __init__(self, context: RunContext, reporter: Optional[Reporter] = None):
        self.context = context
        self.reporter = reporter or Reporter()
        self._tracer = get_tracer()

    def run(self, steps: Iterable[Step]) -> RunReport:
        """
        Run every step once.

        Raises:
            PrivilegeError: the context requires root and is not root.
                No step is checked or applied; ``exc.report`` is empty.
        """
        if self.context.require_privilege and not self.context.is_privileged:
            message = "Please run with sudo or as root."
            self.reporter.error(message)
            raise PrivilegeError(message, report=RunReport())

        sequence = list(steps)
        results: List[StepResult] = []
        with self._tracer.start_as_current_span("bootstrap.run") as run_span:
            run_span.set_attribute("run.steps", len(sequence))
            run_span.set_attribute("run.user", self.context.user)
            for step in sequence:
                result = self._run_step(step)
                results.append(result)
                self.reporter.report(result)

            report = RunReport(results=results)
            run_span.set_attribute("run.clean", report.clean)

        logger.info(
            "Run finished: %d succeeded, %d skipped, %d failed",
            len(report.succeeded),
            len(report.skipped),
            len(report.failed),
        )
        self.reporter.summary(report)
        return report

    def _run_step(self, step: Step) -> StepResult:
        with self._tracer.start_as_current_span("bootstrap.step") as span:
            span.set_attribute("step.name", step.name)
            started = time.monotonic()
            self.reporter.step_started(step)
            outcome, detail = self._execute(step)
            result = StepResult(
                step_name=step.name,
                outcome=outcome,
                detail=detail,
                duration_ms=(time.monotonic() - started) * 1000,
            )
            record_step_result(span, result)
        return result

    def _execute(self, step: Step) -> tuple[StepOutcome, str]:
        try:
            satisfied = step.check()
        except Exception as e:
            logger.warning("Check for %s failed: %s", step.name, e, exc_info=True)
            return StepOutcome.FAILED, f"Check failed: {_describe(e)}"

        if satisfied:
            logger.debug("Step %s already satisfied", step.name)
            return StepOutcome.SKIPPED, "already satisfied"

        try:
            detail = step.apply()
        except Exception as e:
            logger.warning("Apply for %s failed: %s", step.name, e, exc_info=True)
            return StepOutcome.FAILED, _describe(e)

        logger.debug("Step %s applied", step.name)
        return StepOutcome.SUCCEEDED, detail or "applied"

    def plan(self, steps: Iterable[Step]) -> List[StepPlan]:
        """Evaluate checks only. Nothing is applied and no privilege is required."""
        plans = []
        for step in steps:
            try:
                satisfied = bool(step.check())
            except Exception as e:
                plans.append(StepPlan(step_name=step.name, satisfied=None, detail=_describe(e)))
                continue
            detail = "already satisfied" if satisfied else "would apply"
            plans.append(StepPlan(step_name=step.name, satisfied=satisfied, detail=detail))
        return plans
