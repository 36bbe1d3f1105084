"""File helpers shared by catalog steps and the CLI."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union


def atomic_write(
    path: Path,
    content: Union[str, bytes],
    backup: bool = True,
    mode: Optional[int] = None,
) -> Optional[Path]:
    """
    Write file atomically, optionally creating a backup if it exists.

    Returns the backup path when one was written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    backup_path = None
    if path.exists() and backup:
        backup_path = path.with_suffix(path.suffix + ".bak")
        shutil.copy2(path, backup_path)

    # Write to temp file then rename
    binary = isinstance(content, bytes)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, text=not binary)
    try:
        if binary:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        else:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
        if mode is not None:
            os.chmod(temp_path, mode)
        elif path.exists():
            shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except Exception:
        os.unlink(temp_path)
        raise
    return backup_path


def read_os_release(path: Path = Path("/etc/os-release")) -> Dict[str, str]:
    """Parse an os-release file (KEY=value lines, optionally quoted) into a dict."""
    values = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key] = value.strip().strip("\"'")
    return values
