"""
Subprocess and HTTP collaborators for catalog steps.

Commands are passed as argument lists and never through a shell. Every
call is logged before it runs so the operator can replay it by hand.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from typing import Mapping, Optional, Sequence

import httpx

from bootstrapcore.errors import CommandError, StepError
from bootstrapcore.timeouts import COMMAND_DEFAULT_TIMEOUT_S, HTTP_DOWNLOAD_TIMEOUT_S

logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def command_exists(name: str) -> bool:
    """Check if an executable is available on PATH."""
    logger.debug("Checking if %s is available...", name)
    return shutil.which(name) is not None


def run_command(
    cmd: Sequence[str],
    *,
    input_text: Optional[str] = None,
    timeout: float = COMMAND_DEFAULT_TIMEOUT_S,
    env: Optional[Mapping[str, str]] = None,
    context: str = "",
) -> subprocess.CompletedProcess:
    """
    Run a command with consistent error handling.

    Args:
        cmd: Command and arguments
        input_text: Optional stdin input (stdin is closed when omitted)
        timeout: Seconds before the command is killed
        env: Extra environment variables on top of os.environ
        context: Description of what the command is doing (for error messages)

    Returns:
        The completed process (stdout/stderr as text)

    Raises:
        CommandError: On non-zero exit code, timeout, or missing executable
    """
    cmd = [str(arg) for arg in cmd]
    logger.info("Run: %s", shlex.join(cmd))
    full_env = None
    if env:
        full_env = {**os.environ, **env}
    try:
        result = subprocess.run(
            cmd,
            input=input_text,
            stdin=subprocess.DEVNULL if input_text is None else None,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=full_env,
        )
    except subprocess.TimeoutExpired:
        raise CommandError(
            cmd, None, stderr=f"timed out after {timeout} seconds", context=context,
        )
    except FileNotFoundError:
        raise CommandError(cmd, None, stderr=f"{cmd[0]} not found", context=context)

    if result.returncode != 0:
        raise CommandError(
            cmd=cmd,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            context=context,
        )
    return result


def fetch(url: str, timeout: float = HTTP_DOWNLOAD_TIMEOUT_S) -> bytes:
    """
    Download a small file (e.g. an apt signing key).

    Raises:
        StepError: On connection errors or non-2xx responses
    """
    logger.info("Fetch: %s", url)
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise StepError(f"Failed to download {url}: {e}") from e
    return response.content
