"""Liveness polling against the core /info endpoint."""

from __future__ import annotations

import enum
import logging
import time
from typing import Callable

from corectl.errors import (
    PollTimeoutError,
    RemoteStatusError,
    ResponseDecodeError,
    TransportError,
)

logger = logging.getLogger(__name__)

INFO_PATH = "/info"
DEFAULT_POLL_INTERVAL = 0.5


class PollState(enum.Enum):
    POLLING = "polling"
    DONE = "done"


def is_retryable(exc: TransportError) -> bool:
    """Only server-class statuses and connection failures are retried.

    A 4xx or 3xx answer means the core is up and the probe itself was
    rejected, so there is nothing to wait for.
    """
    if isinstance(exc, ResponseDecodeError):
        return False
    if isinstance(exc, RemoteStatusError):
        return exc.status_code // 100 == 5
    return True


class LivenessPoller:
    """Probe until the core answers.

    There is no deadline unless ``max_probes`` is given; ``corectl wait``
    relies on the caller's process timeout to bound it.
    """

    def __init__(
        self,
        probe: Callable[[], object],
        *,
        sleep: Callable[[float], None] | None = None,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_probes: int | None = None,
    ) -> None:
        self._probe = probe
        self._sleep = sleep or time.sleep
        self.interval = interval
        self.max_probes = max_probes
        self.state = PollState.POLLING
        self.probes = 0

    def step(self) -> PollState:
        if self.state is PollState.DONE:
            return self.state
        self.probes += 1
        try:
            self._probe()
        except TransportError as exc:
            if not is_retryable(exc):
                logger.debug("probe %d: core reachable (%s)", self.probes, exc)
                self.state = PollState.DONE
                return self.state
            logger.debug("probe %d failed: %s", self.probes, exc)
            if self.max_probes is not None and self.probes >= self.max_probes:
                raise PollTimeoutError(
                    f"core not ready after {self.probes} probes: {exc}"
                ) from exc
            self._sleep(self.interval)
            return self.state
        logger.debug("probe %d: core ready", self.probes)
        self.state = PollState.DONE
        return self.state

    def run(self) -> int:
        while self.step() is PollState.POLLING:
            pass
        return self.probes


def wait_for_core(
    client,
    *,
    sleep: Callable[[float], None] | None = None,
    interval: float = DEFAULT_POLL_INTERVAL,
    max_probes: int | None = None,
) -> int:
    poller = LivenessPoller(
        lambda: client.call(INFO_PATH, decode=False),
        sleep=sleep,
        interval=interval,
        max_probes=max_probes,
    )
    return poller.run()
