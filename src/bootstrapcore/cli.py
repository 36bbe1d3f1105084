"""
bootstrapcore CLI - Provision a fresh server with idempotent steps.

Commands:
    bootstrapcore run     Run the bootstrap sequence
    bootstrapcore plan    Show which steps would run (checks only)
    bootstrapcore steps   List the bootstrap steps in order

Exit status of ``run``: 0 when every step succeeded or was skipped, 1 when
a step failed or the run lacked root privilege, 2 on usage errors.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional, Sequence

import click

from bootstrapcore.config import BootstrapConfig, load_config
from bootstrapcore.context import RunContext
from bootstrapcore.errors import ConfigError, EmptyKeyError, PrivilegeError, UnknownStepName
from bootstrapcore.files import atomic_write
from bootstrapcore.logger import (
    StepEventLogger,
    attach_event_stream,
    configure_logging,
    detach_event_stream,
)
from bootstrapcore.registry import StepRegistry
from bootstrapcore.reporter import ConsoleReporter
from bootstrapcore.runner import Runner
from bootstrapcore.steps import KeyProvider, build_default_steps
from bootstrapcore.telemetry import configure_tracing, shutdown_tracing


def _key_provider(ssh_key: Optional[str], interactive: bool = True) -> KeyProvider:
    """Key from --ssh-key, else from a prompt (or a failure when not interactive)."""
    if ssh_key is not None:
        return lambda: ssh_key
    if not interactive:
        def missing() -> str:
            raise EmptyKeyError()
        return missing
    return lambda: click.prompt(
        "Enter the SSH key to add", default="", show_default=False, err=True
    )


def _select_steps(
    config: BootstrapConfig,
    key_provider: KeyProvider,
    only: Sequence[str],
    skip: Sequence[str],
) -> StepRegistry:
    registry = build_default_steps(config, key_provider)
    available = ", ".join(registry.names())
    unknown = [name for name in config.skip_steps if name not in registry]
    if unknown:
        raise click.UsageError(
            f"Unknown step(s) in config key skip_steps: {', '.join(unknown)}. "
            f"Available: {available}"
        )
    try:
        return registry.select(only=only, skip=[*skip, *config.skip_steps])
    except UnknownStepName as e:
        raise click.BadParameter(f"{e}. Available: {available}", param_hint="--only/--skip")


@click.group()
@click.version_option(package_name="bootstrapcore")
@click.option(
    "--config", "config_file",
    type=click.Path(exists=True, dir_okay=False),
    envvar="BOOTSTRAPCORE_CONFIG_FILE",
    help="YAML file with configuration overrides",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Diagnostic log level (logs go to stderr)",
)
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]),
    default=None,
    help="Diagnostic log format",
)
@click.pass_context
def main(ctx, config_file, log_level, log_format):
    """bootstrapcore - Idempotent provisioning for fresh servers."""
    try:
        config = load_config(config_file, log_level=log_level, log_format=log_format)
    except ConfigError as e:
        raise click.UsageError(str(e))
    configure_logging(config.log_level, config.log_format)
    ctx.obj = config


@main.command()
@click.option("--only", multiple=True, metavar="STEP", help="Run only this step (repeatable)")
@click.option("--skip", multiple=True, metavar="STEP", help="Do not run this step (repeatable)")
@click.option("--ssh-key", default=None, help="Public key line to authorize (prompted if omitted)")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="text for colored console lines, json for one event per line",
)
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option(
    "--report-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the run report as JSON to this file",
)
@click.pass_obj
def run(config: BootstrapConfig, only, skip, ssh_key, output_format, no_color, report_file):
    """Run the bootstrap sequence."""
    registry = _select_steps(config, _key_provider(ssh_key), only, skip)
    context = RunContext.from_environment(require_privilege=config.require_root)

    tracing = bool(config.otlp_endpoint) and configure_tracing(
        config.otlp_endpoint, config.service_name
    )
    handler = None
    if output_format == "json":
        handler = attach_event_stream(sys.stdout)
        reporter = StepEventLogger(service_name=config.service_name)
    else:
        reporter = ConsoleReporter(color=not no_color)
        reporter.info("Running bootstrap...")

    try:
        report = Runner(context, reporter=reporter).run(registry)
    except PrivilegeError:
        sys.exit(1)
    finally:
        if handler is not None:
            detach_event_stream(handler)
        if tracing:
            shutdown_tracing()

    if report_file:
        atomic_write(
            Path(report_file),
            json.dumps(report.to_dict(), indent=2) + "\n",
            backup=False,
        )

    if report.degraded:
        sys.exit(1)


@main.command()
@click.option("--only", multiple=True, metavar="STEP", help="Check only this step (repeatable)")
@click.option("--skip", multiple=True, metavar="STEP", help="Do not check this step (repeatable)")
@click.option("--ssh-key", default=None, help="Public key line to look for in authorized_keys")
@click.pass_obj
def plan(config: BootstrapConfig, only, skip, ssh_key):
    """Show which steps would run (checks only, nothing is changed)."""
    registry = _select_steps(config, _key_provider(ssh_key, interactive=False), only, skip)
    context = RunContext.from_environment(require_privilege=False)

    for entry in Runner(context).plan(registry):
        if entry.satisfied is None:
            indicator = click.style("[ERR ]", fg="red")
        elif entry.satisfied:
            indicator = click.style("[DONE]", fg="green")
        else:
            indicator = click.style("[TODO]", fg="yellow")
        click.echo(f"{indicator} {entry.step_name}: {entry.detail}")


@main.command()
@click.pass_obj
def steps(config: BootstrapConfig):
    """List the bootstrap steps in execution order."""
    registry = build_default_steps(config, _key_provider(None, interactive=False))
    width = max(len(name) for name in registry.names())
    for index, step in enumerate(registry, start=1):
        marker = " (skipped by config)" if step.name in config.skip_steps else ""
        click.echo(f"{index:2}. {step.name:{width}}  {step.label}{marker}")


if __name__ == "__main__":
    main()
