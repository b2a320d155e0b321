from __future__ import annotations

import logging
from typing import List, Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)


def apk_base_argv(
    *,
    apk: str,
    root_dir: str,
    keys_dir: str,
    repos_file: str,
    extra_args: Sequence[str] = (),
) -> List[str]:
    return [
        apk,
        "--root",
        root_dir,
        "--keys-dir",
        keys_dir,
        "--repositories-file",
        repos_file,
        *extra_args,
    ]


def apk_args_for(*, interactive: bool = False, untrusted: bool = False) -> List[str]:
    args: List[str] = []
    if interactive:
        args.append("--interactive")
    if untrusted:
        args.append("--allow-untrusted")
    return args


def apk_initdb_add(
    packages: Sequence[str],
    *,
    apk: str,
    root_dir: str,
    keys_dir: str,
    repos_file: str,
    extra_args: Sequence[str] = (),
) -> None:
    """Create the package database in an empty root and install packages."""

    argv = apk_base_argv(
        apk=apk,
        root_dir=root_dir,
        keys_dir=keys_dir,
        repos_file=repos_file,
        extra_args=extra_args,
    )
    run_cmd([*argv, "--initdb", "add", *packages], capture=False)


def apk_add(
    packages: Sequence[str],
    *,
    apk: str,
    root_dir: str,
    keys_dir: str,
    repos_file: str,
    extra_args: Sequence[str] = (),
) -> None:
    if not packages:
        return
    argv = apk_base_argv(
        apk=apk,
        root_dir=root_dir,
        keys_dir=keys_dir,
        repos_file=repos_file,
        extra_args=extra_args,
    )
    run_cmd([*argv, "add", *packages], capture=False)
