"""Concurrent wait for a set of TCP endpoints.

Each endpoint gets its own retry loop on a worker thread. All loops share one
``WaitContext``: the first terminal error cancels it, which stops the other
loops at their next connect poll or retry pause.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Sequence

from tcpwait.network import WaitContext, probe
from tcpwait.network.prober import ProbeStatus

LOGGER = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 1.0


def _next_tick(tick: float, interval: float, now: float) -> float:
    """Advance a fixed-period ticker past ``now``, dropping missed ticks."""
    while tick <= now:
        tick += interval
    return tick


def _await_endpoint(
    context: WaitContext,
    address: str,
    connect_timeout: float,
    interval: float,
) -> None:
    """Retry ``address`` until it connects; raise on terminal errors."""
    LOGGER.debug("connecting to %s...", address)
    tick = time.monotonic() + interval
    while True:
        outcome = probe(context, connect_timeout, address)
        if outcome.status is ProbeStatus.CONNECTED:
            LOGGER.info("successfully connected to %s", address)
            return
        if outcome.status is ProbeStatus.INVALID:
            raise outcome.error

        if context.sleep(tick - time.monotonic()):
            raise context.error()
        tick = _next_tick(tick, interval, time.monotonic())


def wait_for_endpoints(
    endpoints: Sequence[str],
    *,
    connect_timeout: float = 0.0,
    interval: float = DEFAULT_INTERVAL_SECONDS,
    timeout: float = 0.0,
) -> None:
    """Block until every endpoint accepts a TCP connection.

    Args:
        endpoints: Addresses to wait for; duplicates are probed independently.
        connect_timeout: Per-attempt connect timeout in seconds (0 = none).
        interval: Seconds between attempts for an unreachable endpoint.
        timeout: Shared deadline in seconds for the whole wait (0 = wait forever).

    Raises:
        ValueError: for an empty endpoint list or a non-positive interval.
        WaitTimeoutError: when the shared deadline elapses first.
        InvalidAddressError: when an address is malformed or cannot be resolved.
    """
    if not endpoints:
        raise ValueError("no endpoints provided")
    if interval <= 0:
        raise ValueError("interval must be positive")
    if connect_timeout < 0 or timeout < 0:
        raise ValueError("timeouts must not be negative")
    if connect_timeout == 0 and timeout == 0:
        LOGGER.debug("no connect timeout and no overall timeout; attempts are bounded by the OS only")

    context = WaitContext(timeout)
    first_error: Optional[BaseException] = None

    with ThreadPoolExecutor(max_workers=len(endpoints), thread_name_prefix="tcpwait") as executor:
        future_map = {
            executor.submit(_await_endpoint, context, address, connect_timeout, interval): address
            for address in endpoints
        }
        try:
            for fut in as_completed(future_map):
                exc = fut.exception()
                if exc is None:
                    continue
                if first_error is None:
                    first_error = exc
                    context.cancel(exc)
                else:
                    LOGGER.debug("wait for %s ended: %s", future_map[fut], exc)
        except BaseException as exc:
            # Interrupted join (e.g. Ctrl-C): stop the workers before shutdown waits on them.
            context.cancel(exc)
            raise

    if first_error is not None:
        raise first_error


__all__ = ["DEFAULT_INTERVAL_SECONDS", "wait_for_endpoints"]
