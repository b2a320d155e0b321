from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .command import CommandError, run_cmd

logger = logging.getLogger(__name__)

PSEUDO_FILESYSTEMS = ("dev", "proc", "sys", "tmp")


class MountError(RuntimeError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"failed to mount {name}fs")


def is_mountpoint(path: str) -> bool:
    r = run_cmd(["mountpoint", "-q", path], check=False, quiet=True)
    return r.returncode == 0


class PseudoMounts:
    """Recursive bind mounts of host pseudo filesystems into a target root.

    Only what this object mounted is recorded, so teardown never touches
    mounts that were already present.
    """

    def __init__(self, root_dir: str) -> None:
        self.root_dir = root_dir
        self.mounted: List[str] = []

    def target(self, name: str) -> str:
        return str(Path(self.root_dir) / name)

    def mount_pseudo(self) -> None:
        for name in PSEUDO_FILESYSTEMS:
            if name in self.mounted:
                continue
            dst = self.target(name)
            if is_mountpoint(dst):
                logger.info("%s already a mount point; leaving it alone", dst)
                continue
            # Recorded first so a signal landing mid-mount still gets it unmounted.
            self.mounted.append(name)
            try:
                run_cmd(["mount", "--rbind", f"/{name}", dst])
            except CommandError as e:
                self.mounted.remove(name)
                raise MountError(name) from e

    def umount_pseudo(self) -> None:
        if not self.mounted:
            return
        run_cmd(["sync"], check=False, quiet=True)
        for name in self.mounted:
            # Best-effort: this runs from error and signal paths too.
            r = run_cmd(["umount", "-R", "-f", self.target(name)], check=False, quiet=True)
            if r.returncode != 0:
                logger.warning("Failed to unmount %s (%d)", self.target(name), r.returncode)
        self.mounted = []
