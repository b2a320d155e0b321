from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from rootfs_bootstrap.lib import apk as apk_mod
from rootfs_bootstrap.lib import mounts as mounts_mod
from rootfs_bootstrap.lib.command import CmdResult, CommandError


class FakeRunner:
    """Stands in for run_cmd; records argv and fakes return codes."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.mountpoints: set[str] = set()
        self.failing: List[Callable[[List[str]], bool]] = []
        self.on_call: Optional[Callable[[List[str]], None]] = None

    def __call__(self, argv, *, check: bool = True, **kwargs) -> CmdResult:
        argv = list(argv)
        self.calls.append(argv)
        if self.on_call is not None:
            self.on_call(argv)

        rc = 0
        if argv[0] == "mountpoint":
            rc = 0 if argv[-1] in self.mountpoints else 1
        if any(pred(argv) for pred in self.failing):
            rc = 1

        if check and rc != 0:
            raise CommandError(argv, rc)
        return CmdResult(argv=argv, returncode=rc, stdout="", stderr="")

    def fail_when(self, pred: Callable[[List[str]], bool]) -> None:
        self.failing.append(pred)

    @property
    def mounted(self) -> List[str]:
        return [c[-1] for c in self.calls if c[:2] == ["mount", "--rbind"]]

    @property
    def unmounted(self) -> List[str]:
        return [c[-1] for c in self.calls if c[0] == "umount"]

    def apk_calls(self, apk: str = "apk") -> List[List[str]]:
        return [c for c in self.calls if c[0] == apk]


@pytest.fixture
def runner(monkeypatch) -> FakeRunner:
    fake = FakeRunner()
    monkeypatch.setattr(mounts_mod, "run_cmd", fake)
    monkeypatch.setattr(apk_mod, "run_cmd", fake)
    return fake


@pytest.fixture
def temp_dir(tmp_path, monkeypatch) -> Path:
    """Redirect tempfile so leftover temp files can be counted."""
    d = tmp_path / "tmpfiles"
    d.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(d))
    return d


@pytest.fixture
def as_root(monkeypatch):
    monkeypatch.setattr(os, "geteuid", lambda: 0)
    monkeypatch.setattr("rootfs_bootstrap.validate.which", lambda name: f"/usr/bin/{name}")


@pytest.fixture
def root_dir(tmp_path) -> Path:
    d = tmp_path / "target"
    d.mkdir()
    return d


@pytest.fixture
def keys_dir(tmp_path) -> Path:
    d = tmp_path / "keys"
    d.mkdir()
    return d


@pytest.fixture
def system_repos(tmp_path) -> Path:
    """A fake /etc/apk layout plus a YAML config pointing at it."""
    etc = tmp_path / "etc-apk"
    (etc / "repositories.d").mkdir(parents=True)
    (etc / "repositories").write_text("https://repo.example.org/main\n", encoding="utf-8")
    (etc / "repositories.d" / "01-contrib.list").write_text(
        "https://repo.example.org/contrib\n", encoding="utf-8"
    )
    cfg = tmp_path / "bootstrap.yaml"
    cfg.write_text(
        f"repositories_file: {etc / 'repositories'}\n"
        f"repositories_dir: {etc / 'repositories.d'}\n",
        encoding="utf-8",
    )
    return cfg


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    before = list(root.handlers)
    yield
    for h in list(root.handlers):
        if h not in before:
            root.removeHandler(h)
            h.close()
    for attr in ("_rootfs_bootstrap_configured", "_rootfs_bootstrap_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)
