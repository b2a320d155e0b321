from __future__ import annotations

import logging
import os
import signal
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import (
    DEFAULT_APK,
    DEFAULT_KEYS_DIR,
    DEFAULT_LOCAL_SOURCE,
    DEFAULT_REPOSITORIES_DIR,
    DEFAULT_REPOSITORIES_FILE,
)
from .lib.apk import apk_args_for
from .lib.mounts import MountError, PseudoMounts
from .lib.repos import RepositoryList, make_temp_file, write_extra_repos

logger = logging.getLogger(__name__)

MODE_LOCAL = "local"
MODE_OSTREE = "ostree"
MODE_NETWORK = "network"

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class BootstrapError(RuntimeError):
    """Fatal condition; the run is torn down and the process exits."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class Interrupted(BootstrapError):
    pass


@dataclass
class Options:
    root: Optional[str] = None
    packages: List[str] = field(default_factory=list)
    local: bool = False
    local_source: str = DEFAULT_LOCAL_SOURCE
    ostree: bool = False
    apk: str = DEFAULT_APK
    interactive: bool = False
    ignore_repos: bool = False
    extra_repos: List[str] = field(default_factory=list)
    keys_dir: str = DEFAULT_KEYS_DIR
    force: bool = False
    untrusted: bool = False
    repositories_file: str = DEFAULT_REPOSITORIES_FILE
    repositories_dir: str = DEFAULT_REPOSITORIES_DIR
    default_packages: List[str] = field(default_factory=lambda: ["base-full"])
    base_packages: List[str] = field(default_factory=lambda: ["base-minimal"])
    ostree_base_packages: List[str] = field(default_factory=lambda: ["base-minimal-ostree"])

    @property
    def mode(self) -> str:
        if self.local:
            return MODE_LOCAL
        if self.ostree:
            return MODE_OSTREE
        return MODE_NETWORK


def _raise_interrupted(signum: int, frame: Any) -> None:
    name = signal.Signals(signum).name
    raise Interrupted(f"interrupted by {name}", exit_code=128 + signum)


class Session:
    """State of one provisioning run.

    Use as a context manager: entering subscribes to SIGINT/SIGTERM and
    allocates the extra-repositories file; leaving (normally, by error, or
    by signal) unmounts everything this session mounted and deletes its
    temporary files. cleanup() may be called any number of times.
    """

    def __init__(self, opts: Options, *, root_dir: str, packages: List[str]) -> None:
        self.opts = opts
        self.root_dir = root_dir
        self.mode = opts.mode
        self.packages = list(packages)
        self.apk_args = apk_args_for(interactive=opts.interactive, untrusted=opts.untrusted)
        self.mounts = PseudoMounts(root_dir)
        self.extra_repos_file: Optional[str] = None
        self.repos: Optional[RepositoryList] = None
        self._saved_handlers: Dict[int, Any] = {}
        self._closed = False

    @property
    def mounted(self) -> List[str]:
        return list(self.mounts.mounted)

    @property
    def repos_file(self) -> Optional[str]:
        return self.repos.path if self.repos else None

    def __enter__(self) -> "Session":
        for signum in HANDLED_SIGNALS:
            self._saved_handlers[signum] = signal.signal(signum, _raise_interrupted)
        try:
            self.extra_repos_file = make_temp_file("rootfs-bootstrap-extra.")
            write_extra_repos(self.extra_repos_file, self.opts.extra_repos)
        except BaseException as e:
            self.cleanup()
            if isinstance(e, OSError):
                raise BootstrapError("failed to set up extra repositories file") from e
            raise
        self.repos = RepositoryList(
            extra_repos_file=self.extra_repos_file,
            system_file=self.opts.repositories_file,
            system_dir=self.opts.repositories_dir,
            ignore_system=self.opts.ignore_repos,
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def repositories_file(self) -> str:
        if self.repos is None:
            raise BootstrapError("session not entered")
        try:
            return self.repos.build()
        except (RuntimeError, OSError) as e:
            raise BootstrapError(f"failed to set up repositories file: {e}") from e

    def mount_pseudo(self) -> None:
        try:
            self.mounts.mount_pseudo()
        except MountError as e:
            raise BootstrapError(str(e)) from e

    def umount_pseudo(self) -> None:
        self.mounts.umount_pseudo()

    def remove_temp_files(self) -> None:
        if self.extra_repos_file:
            _unlink(self.extra_repos_file)
            self.extra_repos_file = None
        if self.repos is not None and self.repos.path:
            _unlink(self.repos.path)
            self.repos.path = None

    def cleanup(self) -> None:
        if self._closed:
            return
        # Ignore further INT/TERM until teardown is complete.
        for signum in self._saved_handlers:
            signal.signal(signum, signal.SIG_IGN)
        try:
            self.umount_pseudo()
            self.remove_temp_files()
        finally:
            self._closed = True
            for signum, handler in self._saved_handlers.items():
                signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
            self._saved_handlers.clear()
        logger.debug("Session cleanup complete for %s", self.root_dir)


def _unlink(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove %s: %s", path, e)
