"""
Live, leveled rendering of step outcomes.

Reporters stream output as the Runner produces it, on three levels: info
(narration), success and error. Public methods never raise; a failure to
render is logged at debug level and dropped so that output problems
cannot abort a run.

Subclasses override the ``_on_*`` hooks. The base class renders nothing.
"""

from __future__ import annotations

import logging
from typing import Sequence

import click

from bootstrapcore.models import RunReport, StepOutcome, StepResult
from bootstrapcore.step import Step

logger = logging.getLogger(__name__)


class Reporter:
    """Base reporter. Renders nothing."""

    def info(self, message: str) -> None:
        self._guard(self._on_info, message)

    def error(self, message: str) -> None:
        self._guard(self._on_error, message)

    def step_started(self, step: Step) -> None:
        self._guard(self._on_step_started, step)

    def report(self, result: StepResult) -> None:
        self._guard(self._on_report, result)

    def summary(self, report: RunReport) -> None:
        self._guard(self._on_summary, report)

    def _guard(self, hook, arg) -> None:
        try:
            hook(arg)
        except Exception as e:
            logger.debug("Reporter %s failed: %s", type(self).__name__, e)

    def _on_info(self, message: str) -> None:
        pass

    def _on_error(self, message: str) -> None:
        pass

    def _on_step_started(self, step: Step) -> None:
        pass

    def _on_report(self, result: StepResult) -> None:
        pass

    def _on_summary(self, report: RunReport) -> None:
        pass


class ConsoleReporter(Reporter):
    """Colored console output: info yellow, success green, error red."""

    def __init__(self, color: bool = True):
        self.color = color

    def _style(self, text: str, fg: str, bold: bool = False) -> str:
        if not self.color:
            return text
        return click.style(text, fg=fg, bold=bold)

    def _on_info(self, message: str) -> None:
        click.echo(self._style(message, "yellow"))

    def _on_error(self, message: str) -> None:
        click.echo(self._style(message, "red"), err=True)

    def _on_step_started(self, step: Step) -> None:
        click.echo(self._style(f"{step.label}...", "yellow"))

    def _on_report(self, result: StepResult) -> None:
        if result.outcome == StepOutcome.SUCCEEDED:
            indicator = self._style("[DONE]", "green")
            click.echo(f"{indicator} {result.step_name}: {result.detail}")
        elif result.outcome == StepOutcome.SKIPPED:
            indicator = self._style("[SKIP]", "green")
            click.echo(f"{indicator} {result.step_name}: {result.detail}")
        else:
            indicator = self._style("[FAIL]", "red")
            click.echo(f"{indicator} {result.step_name}", err=True)
            for line in result.detail.splitlines() or [""]:
                click.echo(f"      {self._style(line, 'red')}", err=True)

    def _on_summary(self, report: RunReport) -> None:
        click.echo()
        click.echo(
            f"{len(report.succeeded)} succeeded, "
            f"{len(report.skipped)} skipped, "
            f"{len(report.failed)} failed"
        )
        if report.clean:
            click.echo(self._style("Bootstrap completed successfully.", "green", bold=True))
        else:
            names = ", ".join(r.step_name for r in report.failed)
            click.echo(
                self._style(f"Bootstrap completed with failures: {names}", "red", bold=True),
                err=True,
            )


class CompositeReporter(Reporter):
    """Fans every call out to several reporters."""

    def __init__(self, reporters: Sequence[Reporter]):
        self.reporters = list(reporters)

    def info(self, message: str) -> None:
        for reporter in self.reporters:
            reporter.info(message)

    def error(self, message: str) -> None:
        for reporter in self.reporters:
            reporter.error(message)

    def step_started(self, step: Step) -> None:
        for reporter in self.reporters:
            reporter.step_started(step)

    def report(self, result: StepResult) -> None:
        for reporter in self.reporters:
            reporter.report(result)

    def summary(self, report: RunReport) -> None:
        for reporter in self.reporters:
            reporter.summary(report)
