"""Root privilege helpers for Linux hosts."""
from __future__ import annotations

import os

from firefox_dev_services.errors import PrivilegeError


def is_root() -> bool:
    try:
        return os.geteuid() == 0
    except AttributeError:
        return False


def ensure_root() -> None:
    if not is_root():
        raise PrivilegeError("Please run as root")
