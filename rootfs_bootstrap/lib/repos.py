from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


def _read_lines(path: Path) -> List[str]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Skipping unreadable repository file %s: %s", str(path), e)
        return []
    return [ln.strip() for ln in text.splitlines() if ln.strip()]


def make_temp_file(prefix: str) -> str:
    fd, path = tempfile.mkstemp(prefix=prefix)
    os.close(fd)
    return path


class RepositoryList:
    """Aggregated repository file handed to the package manager.

    Order: system default file, then every file of the system directory
    (sorted), then the extra repositories. With ignore_system only the
    extras are used. The file is written once; later calls reuse it.
    """

    def __init__(
        self,
        *,
        extra_repos_file: Optional[str],
        system_file: str,
        system_dir: str,
        ignore_system: bool = False,
    ) -> None:
        self.extra_repos_file = extra_repos_file
        self.system_file = system_file
        self.system_dir = system_dir
        self.ignore_system = ignore_system
        self.path: Optional[str] = None

    def entries(self) -> List[str]:
        out: List[str] = []
        if not self.ignore_system:
            sf = Path(self.system_file)
            if sf.is_file():
                out += _read_lines(sf)
            sd = Path(self.system_dir)
            if sd.is_dir():
                for f in sorted(sd.iterdir(), key=lambda c: c.name):
                    if f.is_file():
                        out += _read_lines(f)
        if self.extra_repos_file:
            ef = Path(self.extra_repos_file)
            if ef.exists():
                out += _read_lines(ef)
        return out

    def build(self) -> str:
        if self.path is not None:
            return self.path

        path = make_temp_file("rootfs-bootstrap-repos.")
        self.path = path

        entries = self.entries()
        Path(path).write_text("".join(f"{e}\n" for e in entries), encoding="utf-8")
        logger.info("Repository list (%d entries) written to %s", len(entries), path)
        for e in entries:
            logger.debug("repo %s", e)
        return path


def write_extra_repos(path: str, repos: Sequence[str]) -> None:
    Path(path).write_text("".join(f"{r}\n" for r in repos), encoding="utf-8")
