"""Path utilities for locating host directories used by the tool."""
from __future__ import annotations

import os
from pathlib import Path

from firefox_dev_config.constants import TOOL_NAME


SYSTEM_LOG_ROOT = Path("/var/log")


def get_state_directory() -> Path:
    """
    Get the per-user state directory for the tool.

    Honours ``XDG_STATE_HOME`` when it is set to an absolute path, otherwise
    falls back to ``~/.local/state``.

    Returns:
        Path to the tool's state directory (not created).
    """
    xdg_state = os.environ.get("XDG_STATE_HOME", "").strip()
    if xdg_state and Path(xdg_state).is_absolute():
        base = Path(xdg_state)
    else:
        base = Path.home() / ".local" / "state"
    return base / TOOL_NAME


def running_under_sudo() -> bool:
    """Root privileges obtained through ``sudo`` with the caller's environment."""
    try:
        euid = os.geteuid()
    except AttributeError:
        return False
    return euid == 0 and bool(os.environ.get("SUDO_USER"))


def get_log_directory() -> Path:
    """
    Get the directory holding the rotating log file.

    Under ``sudo`` the caller's ``HOME`` is often preserved, so logs go to
    ``/var/log`` instead of leaving root-owned files in the user's home.
    """
    if running_under_sudo():
        return SYSTEM_LOG_ROOT / TOOL_NAME
    return get_state_directory() / "logs"
