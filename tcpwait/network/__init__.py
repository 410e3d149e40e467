"""Network utilities for TCP reachability checks.

Exports:
- ``probe``: one connect-and-close attempt classified as a ``ProbeOutcome``.
- ``WaitContext``: shared deadline and cancellation for concurrent probes.
- ``resolve_endpoint`` / ``split_host_port``: endpoint validation.
"""

from tcpwait.network.context import WaitCancelledError, WaitContext, WaitTimeoutError
from tcpwait.network.endpoints import (
    InvalidAddressError,
    format_address,
    resolve_endpoint,
    split_host_port,
)
from tcpwait.network.prober import ProbeOutcome, ProbeStatus, probe

__all__ = [
    "InvalidAddressError",
    "ProbeOutcome",
    "ProbeStatus",
    "WaitCancelledError",
    "WaitContext",
    "WaitTimeoutError",
    "format_address",
    "probe",
    "resolve_endpoint",
    "split_host_port",
]
