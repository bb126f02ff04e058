"""Logger initialisation for the CLI."""
from __future__ import annotations

from pathlib import Path

from logly import logger

from firefox_dev_config.paths import get_log_directory


def init_logger(*, verbose: bool = False, log_dir: Path | None = None):
    """Initialize the logger.

    Log records always go to a rotating file sink. Console output is only
    enabled in verbose mode so it does not interleave with the CLI's own
    progress messages.

    Args:
        verbose: Also log to the console at DEBUG level.
        log_dir: Directory for ``setup-firefox-dev.log``. Defaults to the
            per-user state directory.

    Returns:
        The configured ``logly`` logger.
    """
    target_dir = log_dir or get_log_directory()

    logger.configure(
        level="DEBUG" if verbose else "INFO",
        color=verbose,
        console=verbose,
        auto_sink=verbose,
    )

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        logger.warning(f"log directory unavailable: {target_dir}")
    else:
        logger.add(f"{target_dir}/setup-firefox-dev.log", size_limit="10MB", retention=3)

    logger.debug("logger initialized")

    return logger
