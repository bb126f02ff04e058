"""Command-line entrypoint for installing and maintaining Firefox Developer Edition."""
from __future__ import annotations

import argparse
import re
import signal
import sys
from contextlib import contextmanager
from typing import Iterator, NoReturn, Sequence

from logly import logger

from firefox_dev_config.constants import DEFAULT_CONFIG, TOOL_NAME, TOOL_VERSION, InstallerConfig
from firefox_dev_services.artifacts import check_dependencies
from firefox_dev_services.errors import InstallerError
from firefox_dev_services.http_client import Fetcher
from firefox_dev_services.lifecycle import LifecycleOrchestrator
from firefox_dev_services.logger import init_logger
from firefox_dev_services.privilege import ensure_root


_LOCALE_PATTERN = re.compile(r"^[A-Za-z]{2,3}(?:-[A-Za-z0-9]{2,8})*$")


class _ArgumentParser(argparse.ArgumentParser):
    """Reports usage errors with the tool's uniform prefix and exit code 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def _locale(value: str) -> str:
    if not _LOCALE_PATTERN.match(value):
        raise argparse.ArgumentTypeError(f"invalid locale '{value}' (expected e.g. en-US, de, ja)")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=TOOL_NAME,
        description="Install, update and remove Firefox Developer Edition under a fixed system location.",
    )
    parser.add_argument("-v", "--version", action="store_true", help="Output version information and exit.")
    parser.add_argument("-V", "--verbose", action="store_true", help="Log debug output to the console.")
    subparsers = parser.add_subparsers(dest="command", metavar="command", parser_class=_ArgumentParser)

    install = subparsers.add_parser("install", help="Install Firefox Developer Edition.")
    install.add_argument("-l", "--lang", type=_locale, help="Locale to install (default: remembered or en-US).")

    update = subparsers.add_parser("update", help="Update if a new version is available.")
    update.add_argument("-c", "--check", action="store_true", help="Only report whether an update is available.")
    update.add_argument("-f", "--force", action="store_true", help="Reinstall the latest version without a version check.")
    update.add_argument("-l", "--lang", type=_locale, help="Locale to update to (default: remembered locale).")

    subparsers.add_parser("uninstall", help="Uninstall Firefox Developer Edition.")
    subparsers.add_parser("status", help="Report the installed version and check installed files.")
    subparsers.add_parser("version", help="Output version information and exit.")
    subparsers.add_parser("help", help="Display this help and exit.")
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    config: InstallerConfig | None = None,
    fetcher: Fetcher | None = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version or args.command == "version":
        print(f"{TOOL_NAME}: v{TOOL_VERSION}")
        return 0
    if args.command in (None, "help"):
        parser.print_help()
        return 0
    if args.command == "update" and args.check and args.force:
        parser.error("--check and --force cannot be combined")

    init_logger(verbose=args.verbose)
    orchestrator = LifecycleOrchestrator(config or DEFAULT_CONFIG, fetcher=fetcher)
    try:
        with _terminate_on_signals():
            _dispatch(args, orchestrator)
    except InstallerError as exc:
        logger.error(f"{args.command} failed: {exc}")
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Error: interrupted", file=sys.stderr)
        return 1
    return 0


def _dispatch(args: argparse.Namespace, orchestrator: LifecycleOrchestrator) -> None:
    if args.command == "install":
        check_dependencies()
        ensure_root()
        orchestrator.install(args.lang)
    elif args.command == "update":
        check_dependencies()
        if args.check:
            orchestrator.check_update(args.lang)
            return
        ensure_root()
        if args.force:
            orchestrator.update_force(args.lang)
        else:
            orchestrator.update(args.lang)
    elif args.command == "uninstall":
        ensure_root()
        orchestrator.uninstall()
    elif args.command == "status":
        orchestrator.status()


@contextmanager
def _terminate_on_signals() -> Iterator[None]:
    """Turn SIGTERM/SIGHUP into ``SystemExit`` so pending cleanup still runs."""

    def _exit(signum: int, _frame: object) -> NoReturn:
        raise SystemExit(1)

    handled = [sig for sig in (signal.SIGTERM, getattr(signal, "SIGHUP", None)) if sig is not None]
    previous = {sig: signal.signal(sig, _exit) for sig in handled}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


if __name__ == "__main__":
    raise SystemExit(main())
