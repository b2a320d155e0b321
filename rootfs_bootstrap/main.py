from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from .config import BootstrapConfig, load_config
from .logging_utils import configure_logging
from .pipeline import PipelineResult, run_pipeline
from .session import BootstrapError, Options, Session
from .steps import InstallBaseStep, InstallPackagesStep
from .validate import effective_packages, validate

logger = logging.getLogger(__name__)

PROG = "rootfs-bootstrap"

DESCRIPTION = """\
By default, a network installation is performed. If no packages
are given, base-full is installed."""


class UsageError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    p = _Parser(
        prog=PROG,
        usage="%(prog)s [opts] root [packages]...",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    p.add_argument("-l", dest="local", action="store_true", help="Perform a local installation.")
    p.add_argument("-L", dest="local_source", metavar="PATH", default=None, help="Override the local installation source root.")
    p.add_argument("-o", dest="ostree", action="store_true", help="Perform an ostree installation.")
    p.add_argument("-a", dest="apk", metavar="PATH", default=None, help="Use a different apk binary.")
    p.add_argument("-i", dest="interactive", action="store_true", help="Run apk in interactive mode.")
    p.add_argument("-I", dest="ignore_repos", action="store_true", help="Ignore system repositories.")
    p.add_argument("-r", dest="extra_repos", metavar="REPO", action="append", default=[], help="Specify additional package repository.")
    p.add_argument("-k", dest="keys_dir", metavar="DIR", default=None, help="Override apk keys directory.")
    p.add_argument("-f", dest="force", action="store_true", help="Force installation even with non-empty target root.")
    p.add_argument("-u", dest="untrusted", action="store_true", help="Allow untrusted packages.")
    p.add_argument("-C", dest="config", metavar="FILE", default=None, help="Read defaults from a YAML file.")
    p.add_argument("-v", dest="verbose", action="store_true", help="Log debug output.")
    p.add_argument("-h", dest="help", action="store_true", help="Print this message.")
    p.add_argument("root", nargs="?", default=None)
    p.add_argument("packages", nargs="*", default=[])
    return p


def options_from_args(args: argparse.Namespace, cfg: BootstrapConfig) -> Options:
    """Command-line flags win over the config file, which wins over defaults."""

    return Options(
        root=args.root,
        packages=list(args.packages),
        local=bool(args.local),
        local_source=args.local_source or cfg.local_source,
        ostree=bool(args.ostree),
        apk=args.apk or cfg.apk,
        interactive=bool(args.interactive),
        ignore_repos=bool(args.ignore_repos),
        extra_repos=list(args.extra_repos),
        keys_dir=args.keys_dir or cfg.keys_dir,
        force=bool(args.force),
        untrusted=bool(args.untrusted),
        repositories_file=cfg.repositories_file,
        repositories_dir=cfg.repositories_dir,
        default_packages=cfg.default_packages,
        base_packages=cfg.base_packages,
        ostree_base_packages=cfg.ostree_base_packages,
    )


def build_steps():
    return [
        InstallBaseStep(),
        InstallPackagesStep(),
    ]


def run(opts: Options) -> PipelineResult:
    """Validate, then provision the root inside a guaranteed-cleanup session."""

    root_dir = validate(opts)
    packages = effective_packages(opts)

    with Session(opts, root_dir=root_dir, packages=packages) as session:
        result = run_pipeline(session=session, steps=build_steps())

    logger.info("Installation to %s complete.", root_dir)
    return result


def main(argv: Optional[list[str]] = None) -> int:
    p = build_parser()
    try:
        args = p.parse_args(argv)
    except UsageError as e:
        sys.stderr.write(f"{PROG}: {e}\n")
        sys.stderr.write(p.format_help())
        return 1

    if args.help:
        sys.stdout.write(p.format_help())
        return 0

    try:
        cfg = load_config(args.config)
    except (OSError, ValueError, RuntimeError) as e:
        sys.stderr.write(f"ERROR: could not load config: {e}\n")
        return 1

    configure_logging(
        log_path=cfg.log_path,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        run(options_from_args(args, cfg))
    except BootstrapError as e:
        logger.debug("Bootstrap failed", exc_info=True)
        sys.stderr.write(f"ERROR: {e}\n")
        return e.exit_code
    except KeyboardInterrupt:
        sys.stderr.write("ERROR: interrupted\n")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
