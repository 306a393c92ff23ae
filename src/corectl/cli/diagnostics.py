"""Deferred diagnostics and fatal-exit reporting for the corectl CLI.

Log output is collected while a command runs and only written to stderr
when the command fails, so successful runs stay silent.
"""

from __future__ import annotations

import contextlib
import io
import logging
import re
from typing import Iterator, TextIO

from corectl.errors import RemoteStatusError

EXIT_FATAL = 2
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_SENSITIVE_FIELDS = (
    "access_token",
    "authorization",
    "secret",
    "token",
)


class DiagnosticSink:
    """Append-only buffer drained at most once, on a failure path."""

    def __init__(self) -> None:
        self._buffer = io.StringIO()
        self.drained = False

    def record(self, entry: str) -> None:
        self._buffer.write(entry)
        if not entry.endswith("\n"):
            self._buffer.write("\n")

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    def drain_on_failure(self, stream: TextIO) -> None:
        if self.drained:
            return
        self.drained = True
        stream.write(self._buffer.getvalue())


class SinkHandler(logging.Handler):
    def __init__(self, sink: DiagnosticSink) -> None:
        super().__init__(level=logging.DEBUG)
        self.sink = sink
        self.setFormatter(logging.Formatter(LOG_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.sink.record(self.format(record))
        except Exception:  # pragma: no cover
            self.handleError(record)


@contextlib.contextmanager
def capture_logs(sink: DiagnosticSink, logger_name: str = "corectl") -> Iterator[DiagnosticSink]:
    target = logging.getLogger(logger_name)
    handler = SinkHandler(sink)
    previous_level = target.level
    previous_propagate = target.propagate
    target.addHandler(handler)
    target.setLevel(logging.DEBUG)
    target.propagate = False
    try:
        yield sink
    finally:
        target.removeHandler(handler)
        target.setLevel(previous_level)
        target.propagate = previous_propagate


def sanitize_error_text(value: str) -> str:
    redacted = value
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)({field}\s*[=:]\s*)([^,\s&]+)",
            r"\1[REDACTED]",
            redacted,
        )
    # user:secret credentials embedded in URLs
    redacted = re.sub(r"(?i)(https?://[^:/\s@]+:)([^@\s]+)(@)", r"\1[REDACTED]\3", redacted)
    return redacted


def fatalln(sink: DiagnosticSink, stderr: TextIO, *messages: object) -> int:
    sink.drain_on_failure(stderr)
    print(*messages, file=stderr)
    return EXIT_FATAL


def die_on_rpc_error(
    sink: DiagnosticSink,
    stderr: TextIO,
    err: BaseException | None,
    *prefixes: object,
) -> int | None:
    if err is None:
        return None

    sink.drain_on_failure(stderr)
    if prefixes:
        print(*prefixes, file=stderr)

    error_data = err.error_data if isinstance(err, RemoteStatusError) else None
    if error_data is not None and (error_data.chain_code or error_data.message):
        print("RPC error:", error_data.chain_code, error_data.message, file=stderr)
        if error_data.detail:
            print("Detail:", error_data.detail, file=stderr)
    else:
        print("RPC error:", sanitize_error_text(str(err)), file=stderr)
    return EXIT_FATAL
