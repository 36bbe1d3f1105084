"""
Timeout constants for bootstrapcore.

Centralizes timeout values for external collaborators (subprocesses and
HTTP downloads). The Runner itself never times out a step.
"""

from __future__ import annotations

# =============================================================================
# Subprocess Timeouts
# =============================================================================

# Default timeout for short commands (dpkg, sshd -t, systemctl)
COMMAND_DEFAULT_TIMEOUT_S = 120

# apt-get update/upgrade/install can take a long time on a fresh host
APT_TIMEOUT_S = 1800

# =============================================================================
# HTTP Client Timeouts
# =============================================================================

# Timeout for downloading apt repository signing keys
HTTP_DOWNLOAD_TIMEOUT_S = 30.0
