from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional


def configure_logging(
    log_path: Optional[str] = None,
    level: int = logging.INFO,
    also_console: bool = True,
) -> Optional[str]:
    """Configure logging.

    Console output goes to stderr so that stdout stays with the package
    manager. A log file is only written when log_path is given; if it
    cannot be created there we fall back to the working directory.

    Returns the actual file path being used, or None.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_rootfs_bootstrap_configured", False):
        return getattr(logger, "_rootfs_bootstrap_log_path", log_path)

    chosen_path: Optional[str] = None
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    if log_path:
        try:
            Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            chosen_path = log_path
        except OSError:
            fallback = str(Path.cwd() / "rootfs-bootstrap.log")
            file_handler = logging.FileHandler(fallback)
            chosen_path = fallback
        file_handler.setFormatter(fmt)
        handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(fmt="%(message)s"))
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_rootfs_bootstrap_configured", True)
    setattr(logger, "_rootfs_bootstrap_log_path", chosen_path)

    logging.getLogger(__name__).debug(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
