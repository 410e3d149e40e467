"""Command-line entrypoint: wait for TCP endpoints, then optionally run a command."""

import argparse
import logging
import subprocess
import sys
from typing import List, Optional, Sequence

from tcpwait.alerts import install_telegram_log_handler_from_env
from tcpwait.config import load_config
from tcpwait.durations import format_duration, parse_duration
from tcpwait.jobs import Policy, UsageError, build_run_config, run
from tcpwait.logging_utils import configure_logging, generate_run_id

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 22  # EINVAL


def _duration(text: str) -> float:
    try:
        return parse_duration(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tcpwait",
        description="Wait for TCP endpoints to accept connections, then optionally run a command.",
        epilog=(
            "command args: execute command with arguments after the test finishes "
            "(default: if connection succeeded)"
        ),
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=_duration,
        default=0.0,
        help="Timeout in format N{ns,us,ms,s,m,h}, e.g. '5s' == 5 seconds. Zero for no timeout (default: 0).",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=_duration,
        default=1.0,
        help="Interval between retries in format N{ns,us,ms,s,m,h} (default: 1s).",
    )
    parser.add_argument(
        "-c",
        "--connect-timeout",
        type=_duration,
        default=None,
        help="Timeout of a single connection attempt (default: same as --timeout).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Do not print anything.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose mode: trace every connection attempt.",
    )
    parser.add_argument(
        "-a",
        "--address",
        dest="addresses",
        action="append",
        default=[],
        metavar="HOST:PORT",
        help="Endpoint to await, in the form 'host:port'. Repeatable.",
    )
    parser.add_argument(
        "--on",
        "-on",
        default=Policy.ON_SUCCESS.value,
        help=(
            "Condition for command execution. Possible values: 's' - after success, "
            "'f' - after failure, 'any' - always (default: s)."
        ),
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command (with arguments) to run after the wait.",
    )
    return parser


def parse_args(
    argv: Optional[Sequence[str]] = None,
    parser: Optional[argparse.ArgumentParser] = None,
) -> argparse.Namespace:
    args = (parser or build_parser()).parse_args(argv)
    command: List[str] = list(args.command or [])
    if command and command[0] == "--":
        command = command[1:]
    args.command = command
    return args


def _exit_code_for(exc: BaseException) -> int:
    if isinstance(exc, subprocess.CalledProcessError) and exc.returncode > 0:
        return exc.returncode
    return EXIT_FAILURE


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parse_args(argv, parser)

    app_config = load_config()
    run_id = generate_run_id()
    configure_logging(app_config, run_id=run_id, quiet=args.quiet, verbose=args.verbose)
    install_telegram_log_handler_from_env(app_name=app_config.app_name, run_id=run_id)

    try:
        run_config = build_run_config(
            args.addresses,
            command=args.command,
            timeout=args.timeout,
            interval=args.interval,
            connect_timeout=args.connect_timeout,
            quiet=args.quiet,
            verbose=args.verbose,
            on=args.on,
        )
    except UsageError as exc:
        if not args.quiet:
            print(exc, file=sys.stderr)
            parser.print_help(sys.stderr)
        return EXIT_USAGE

    LOGGER.debug(
        "run %s: endpoints=%s timeout=%s interval=%s on=%s",
        run_id,
        ", ".join(run_config.endpoints),
        format_duration(run_config.timeout),
        format_duration(run_config.interval),
        run_config.on,
    )
    try:
        run(run_config)
    except Exception as exc:  # noqa: BLE001 - already logged by run()
        return _exit_code_for(exc)
    return EXIT_OK


__all__ = ["EXIT_FAILURE", "EXIT_OK", "EXIT_USAGE", "build_parser", "main", "parse_args"]


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
