"""
Logging setup and structured step events.

Step events are JSON lines, one per event, written through the
``bootstrapcore.events`` logger so they can be shipped to a log collector.

Logged events:
- step.started
- step.skipped
- step.succeeded
- step.failed
- run.completed
- run.aborted

Usage:
    from bootstrapcore.logger import StepEventLogger, attach_event_stream

    attach_event_stream(sys.stdout)
    runner = Runner(context, reporter=StepEventLogger(host="web-1"))
"""

from __future__ import annotations

import json
import logging
import socket
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional

from bootstrapcore.models import RunReport, StepOutcome, StepResult
from bootstrapcore.reporter import Reporter
from bootstrapcore.step import Step

_events_logger = logging.getLogger("bootstrapcore.events")
_events_logger.setLevel(logging.INFO)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "info", fmt: str = "text", stream: Optional[IO] = None) -> None:
    """
    Install a handler on the ``bootstrapcore`` logger.

    Args:
        level: debug, info, warning or error
        fmt: "json" for one JSON object per line, "text" for console
        stream: Output stream (defaults to stderr)
    """
    root = logging.getLogger("bootstrapcore")
    root.setLevel(_LEVELS.get(level, logging.INFO))
    for handler in list(root.handlers):
        if getattr(handler, "_bootstrapcore", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    handler._bootstrapcore = True
    root.addHandler(handler)


def attach_event_stream(stream: IO) -> logging.Handler:
    """Send step events, unformatted, to ``stream`` and stop propagation."""
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _events_logger.addHandler(handler)
    _events_logger.propagate = False
    return handler


def detach_event_stream(handler: logging.Handler) -> None:
    _events_logger.removeHandler(handler)
    if not _events_logger.handlers:
        _events_logger.propagate = True


class StepEventLogger(Reporter):
    """
    Reporter that emits step events as JSON log lines.

    Each entry carries the timestamp, level, event name, host and step
    name, plus event-specific fields.
    """

    def __init__(self, host: Optional[str] = None, service_name: str = "bootstrapcore"):
        """
        Initialize step event logger.

        Args:
            host: Host label for every event (defaults to the hostname)
            service_name: Service name for log attribution
        """
        self.host = host or socket.gethostname()
        self.service_name = service_name
        self._logger = _events_logger

    def _emit(self, event: str, level: str = "info", **fields: Any) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
            "host": self.host,
        }
        entry.update(fields)

        log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        else:
            self._logger.info(log_line)

    def _on_info(self, message: str) -> None:
        self._emit("run.info", message=message)

    def _on_error(self, message: str) -> None:
        self._emit("run.aborted", level="error", message=message)

    def _on_step_started(self, step: Step) -> None:
        self._emit("step.started", step=step.name, description=step.label)

    def _on_report(self, result: StepResult) -> None:
        level = "error" if result.outcome == StepOutcome.FAILED else "info"
        self._emit(
            f"step.{result.outcome.value}",
            level=level,
            step=result.step_name,
            detail=result.detail,
            duration_ms=round(result.duration_ms, 1),
        )

    def _on_summary(self, report: RunReport) -> None:
        self._emit(
            "run.completed",
            level="info" if report.clean else "error",
            **report.to_dict()["summary"],
            clean=report.clean,
        )
