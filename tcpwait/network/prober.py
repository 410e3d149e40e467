"""Single-endpoint TCP reachability probe.

One call makes one connection attempt: the socket is connected and closed
straight away, no data is exchanged. Retrying is the caller's business.

The connect runs non-blocking and is polled in short slices so a cancelled or
expired ``WaitContext`` aborts it promptly.
"""

import enum
import errno
import logging
import os
import selectors
import socket
import time
from dataclasses import dataclass
from typing import Optional

from tcpwait.logging_utils import perf
from tcpwait.network.context import WaitCancelledError, WaitContext
from tcpwait.network.endpoints import InvalidAddressError, lookup, split_host_port

LOGGER = logging.getLogger(__name__)

# Upper bound on how long a pending connect goes without checking the context.
POLL_SLICE_SECONDS = 0.05

_IN_PROGRESS = {0, errno.EINPROGRESS, errno.EALREADY, errno.EWOULDBLOCK, errno.EAGAIN}


class ProbeStatus(enum.Enum):
    CONNECTED = "connected"
    UNREACHABLE = "unreachable"
    INVALID = "invalid"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one probe attempt.

    Attributes:
        address: The probed ``host:port``.
        status: Classification of the attempt.
        error: Underlying error for UNREACHABLE/INVALID outcomes.
    """

    address: str
    status: ProbeStatus
    error: Optional[Exception] = None

    @property
    def connected(self) -> bool:
        return self.status is ProbeStatus.CONNECTED

    @property
    def retryable(self) -> bool:
        return self.status is ProbeStatus.UNREACHABLE

    def __str__(self) -> str:
        if self.error is None:
            return f"{self.address}: {self.status.value}"
        return f"{self.address}: {self.status.value} ({self.error})"


def _attempt_deadline(context: WaitContext, connect_timeout: float) -> Optional[float]:
    deadlines = []
    if connect_timeout > 0:
        deadlines.append(time.monotonic() + connect_timeout)
    if context.deadline is not None:
        deadlines.append(context.deadline)
    return min(deadlines) if deadlines else None


def _await_connected(sock: socket.socket, context: WaitContext, deadline: Optional[float]) -> None:
    """Poll until the pending connect on ``sock`` settles or time runs out."""
    with selectors.DefaultSelector() as selector:
        selector.register(sock, selectors.EVENT_WRITE)
        while True:
            if context.done():
                raise context.error() or TimeoutError("wait finished")
            wait_for = POLL_SLICE_SECONDS
            if deadline is not None:
                left = deadline - time.monotonic()
                if left <= 0:
                    raise TimeoutError("i/o timeout")
                wait_for = min(wait_for, left)
            if selector.select(wait_for):
                break

    err = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
    if err:
        raise OSError(err, os.strerror(err))


def _connect_once(context: WaitContext, info, deadline: Optional[float]) -> None:
    family, socktype, proto, _canonname, sockaddr = info
    sock = socket.socket(family, socktype, proto)
    try:
        sock.setblocking(False)
        err = sock.connect_ex(sockaddr)
        if err not in _IN_PROGRESS:
            raise OSError(err, os.strerror(err))
        if err != 0:
            _await_connected(sock, context, deadline)
    except BaseException:
        sock.close()
        raise

    try:
        sock.close()
    except OSError as exc:
        LOGGER.error("failed to close connection to %s: %s", sockaddr, exc)


@perf("network.probe", level=logging.DEBUG)
def probe(context: WaitContext, connect_timeout: float, address: str) -> ProbeOutcome:
    """Attempt one TCP connection to ``address`` and classify the result.

    Args:
        context: Shared wait context; its deadline and cancellation bound the attempt.
        connect_timeout: Per-attempt timeout in seconds; 0 relies on the context only.
        address: ``host:port`` to connect to.

    Returns:
        CONNECTED on success, INVALID for malformed or unresolvable addresses,
        UNREACHABLE for every other failure.
    """
    try:
        host, port = split_host_port(address)
        infos = lookup(host, port)
    except InvalidAddressError as exc:
        outcome = ProbeOutcome(address, ProbeStatus.INVALID, exc)
        LOGGER.debug("probe %s", outcome)
        return outcome

    deadline = _attempt_deadline(context, connect_timeout)
    last_error: Optional[Exception] = None
    for info in infos:
        try:
            _connect_once(context, info, deadline)
        except (OSError, WaitCancelledError) as exc:
            last_error = exc
            if context.done():
                break
            continue
        outcome = ProbeOutcome(address, ProbeStatus.CONNECTED)
        LOGGER.debug("probe %s", outcome)
        return outcome

    outcome = ProbeOutcome(address, ProbeStatus.UNREACHABLE, last_error)
    LOGGER.debug("probe %s", outcome)
    return outcome


__all__ = ["ProbeOutcome", "ProbeStatus", "probe"]
