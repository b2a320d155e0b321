from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from .lib.command import which
from .session import BootstrapError, Options

logger = logging.getLogger(__name__)

WRITE_PROBE = ".write-test"


def check_privileges() -> None:
    if os.geteuid() != 0:
        raise BootstrapError("must be run as root")


def check_tools(opts: Options) -> None:
    if which("mountpoint") is None:
        raise BootstrapError("mountpoint must be present")
    if which(opts.apk) is None:
        raise BootstrapError(f"{opts.apk} must be present")


def resolve_root(root: str | None) -> str:
    if not root:
        raise BootstrapError("root directory not given")
    p = Path(root)
    if not p.is_dir():
        raise BootstrapError("root directory does not exist")
    try:
        return str(p.resolve(strict=True))
    except OSError as e:
        raise BootstrapError("could not resolve root directory") from e


def check_writable(root_dir: str) -> None:
    probe = Path(root_dir) / WRITE_PROBE
    try:
        probe.touch()
    except OSError as e:
        raise BootstrapError("root directory is not writable") from e
    try:
        probe.unlink()
    except OSError as e:
        raise BootstrapError("root directory is not writable") from e


def check_empty(root_dir: str) -> None:
    """Only directories may exist at the top level (e.g. lost+found)."""

    for entry in Path(root_dir).iterdir():
        if entry.is_dir():
            continue
        logger.debug("Non-directory entry in root: %s", str(entry))
        raise BootstrapError("root directory is non-empty")


def effective_packages(opts: Options) -> List[str]:
    if opts.packages:
        return list(opts.packages)
    if opts.local:
        return []
    return list(opts.default_packages)


def validate(opts: Options) -> str:
    """Check every precondition of a run and return the absolute root."""

    if opts.local and opts.ostree:
        raise BootstrapError("local and ostree installations are mutually exclusive")

    check_privileges()

    if not Path(opts.keys_dir).is_dir():
        raise BootstrapError("keys directory does not exist")

    check_tools(opts)

    root_dir = resolve_root(opts.root)
    check_writable(root_dir)
    if not opts.force:
        check_empty(root_dir)

    if opts.local and not Path(opts.local_source).is_dir():
        raise BootstrapError("local installation source does not exist")

    return root_dir
