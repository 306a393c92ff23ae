"""Command-line interface for corectl."""

from __future__ import annotations

import argparse
import sys
from typing import Callable, Sequence, TextIO

from corectl import _build
from corectl.cli.commands import COMMANDS
from corectl.cli.config import CLIConfig, load_cli_config
from corectl.cli.diagnostics import DiagnosticSink, capture_logs, die_on_rpc_error, fatalln
from corectl.client import RPCClient, bootstrap_client
from corectl.errors import ConfigError, CorectlError, TransportError, UsageError

EXIT_SUCCESS = 0
EXIT_UNKNOWN_COMMAND = 1

ClientFactory = Callable[[CLIConfig], RPCClient]


class _ArgumentError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    # Unrecognised leading tokens are reported as unknown commands by main().
    def error(self, message: str):  # noqa: ANN201
        raise _ArgumentError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="corectl", add_help=False, allow_abbrev=False)
    parser.add_argument("-version", action="store_true", dest="version")
    parser.add_argument("--config", default=None)
    parser.add_argument("command", nargs="?")
    parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def _bootstrap(config: CLIConfig) -> RPCClient:
    return bootstrap_client(
        config.core_url,
        config.home_dir,
        access_token=config.access_token,
    )


def _print_version(stdout: TextIO) -> None:
    print(f"corectl {_build.client_version()}", file=stdout)
    print(f"build-commit: {_build.BUILD_COMMIT}", file=stdout)
    print(f"build-date: {_build.BUILD_DATE}", file=stdout)


def print_help(stream: TextIO) -> None:
    print("usage: corectl [-version] [--config PATH] [command] [arguments]", file=stream)
    print("\nThe commands are:\n", file=stream)
    width = max(len(name) for name in COMMANDS)
    for name in sorted(COMMANDS):
        print(f"\t{name.ljust(width)}   {COMMANDS[name].summary}", file=stream)
    print("\nFlags:", file=stream)
    print("\t-version   print version information", file=stream)
    print("\t--config   path to a TOML config file (default: $CHAINMINT_HOME/config.toml)", file=stream)
    print(file=stream)


def _unknown_command(name: str, stderr: TextIO) -> int:
    print("unknown command:", name, file=stderr)
    print_help(stderr)
    return EXIT_UNKNOWN_COMMAND


def main(
    argv: Sequence[str] | None = None,
    *,
    stdout: TextIO = sys.stdout,
    stderr: TextIO = sys.stderr,
    sink: DiagnosticSink | None = None,
    client_factory: ClientFactory = _bootstrap,
) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except _ArgumentError:
        return _unknown_command(argv[0] if argv else "", stderr)

    if args.version:
        _print_version(stdout)
        return EXIT_SUCCESS

    if args.command is None:
        print_help(stdout)
        return EXIT_SUCCESS

    command = COMMANDS.get(args.command)
    if command is None:
        return _unknown_command(args.command, stderr)

    sink = sink if sink is not None else DiagnosticSink()
    with capture_logs(sink):
        try:
            config = load_cli_config(args.config)
        except ConfigError as exc:
            return fatalln(sink, stderr, "error: loading config:", exc)

        try:
            client = client_factory(config)
        except ConfigError as exc:
            return fatalln(sink, stderr, "error: loading TLS cert:", exc)

        try:
            command.handler(client, args.args, stdout)
        except UsageError as exc:
            return fatalln(sink, stderr, exc)
        except TransportError as exc:
            return die_on_rpc_error(sink, stderr, exc)
        except CorectlError as exc:
            return fatalln(sink, stderr, "error:", exc)

    return EXIT_SUCCESS


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
