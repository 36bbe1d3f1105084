"""
bootstrapcore - Idempotent provisioning steps for fresh servers.

Runs an ordered sequence of named steps against the local host. Each step
checks whether its work is already done and skips itself if so; a failing
step is recorded and the run continues with the next one.

Key Features:
- Step / CallableStep interface with check and apply
- StepRegistry with fail-fast duplicate detection
- Runner with a root privilege gate and continue-on-failure policy
- Live console or JSON-line reporting, OpenTelemetry spans per step
- Catalog for apt, GitHub CLI, Docker, utilities, sshd_config, authorized_keys

Example usage:
    from bootstrapcore import CallableStep, RunContext, Runner, StepRegistry

    registry = StepRegistry()
    registry.register(CallableStep("hello", check=lambda: False, apply=lambda: "hi"))
    report = Runner(RunContext(euid=0)).run(registry)
    assert report.clean
"""

__version__ = "0.1.0"
__all__ = [
    "CallableStep",
    "RunContext",
    "RunReport",
    "Runner",
    "Step",
    "StepOutcome",
    "StepRegistry",
    "StepResult",
    "__version__",
]


# Lazy imports to avoid loading pydantic/OTel at import time
def __getattr__(name: str):
    if name in ("Step", "CallableStep"):
        from bootstrapcore import step
        return getattr(step, name)
    if name in ("RunReport", "StepOutcome", "StepResult"):
        from bootstrapcore import models
        return getattr(models, name)
    if name == "StepRegistry":
        from bootstrapcore.registry import StepRegistry
        return StepRegistry
    if name == "RunContext":
        from bootstrapcore.context import RunContext
        return RunContext
    if name == "Runner":
        from bootstrapcore.runner import Runner
        return Runner
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
