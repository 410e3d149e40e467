"""Run orchestration: validate the run config, wait, then run the post-check command."""

import enum
import logging
import subprocess
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from tcpwait.jobs.waiter import DEFAULT_INTERVAL_SECONDS, wait_for_endpoints
from tcpwait.logging_utils import perf_span
from tcpwait.network import InvalidAddressError, WaitTimeoutError, resolve_endpoint

LOGGER = logging.getLogger(__name__)


class UsageError(ValueError):
    """The run configuration is unusable; nothing was attempted."""


class Policy(enum.Enum):
    """When the post-check command runs, keyed by the ``--on`` token."""

    ON_SUCCESS = "s"
    ON_FAILURE = "f"
    ALWAYS = "any"

    def should_run(self, succeeded: bool) -> bool:
        if self is Policy.ALWAYS:
            return True
        return succeeded if self is Policy.ON_SUCCESS else not succeeded


POLICY_ERROR = "only 's' or 'f' of 'any' are allowed for '-on' argument"


@dataclass(frozen=True)
class RunConfig:
    endpoints: Tuple[str, ...] = ()
    timeout: float = 0.0
    interval: float = DEFAULT_INTERVAL_SECONDS
    connect_timeout: Optional[float] = None  # None follows ``timeout``
    quiet: bool = False
    verbose: bool = False
    on: str = Policy.ON_SUCCESS.value
    command: Tuple[str, ...] = ()

    @property
    def effective_connect_timeout(self) -> float:
        return self.timeout if self.connect_timeout is None else self.connect_timeout

    @property
    def policy(self) -> Policy:
        return Policy(self.on)


def check_config(config: RunConfig) -> None:
    """Reject configurations the wait cannot start with."""
    if not config.endpoints:
        raise UsageError("no endpoints provided")
    if config.on not in {p.value for p in Policy}:
        raise UsageError(POLICY_ERROR)
    if config.interval <= 0:
        raise UsageError("retry interval must be positive")


def build_run_config(
    addresses: Iterable[str],
    *,
    command: Sequence[str] = (),
    **options,
) -> RunConfig:
    """Resolve ``addresses`` and assemble a checked ``RunConfig``.

    Raises:
        UsageError: for unresolvable addresses or invalid options.
    """
    endpoints = []
    for address in addresses:
        try:
            endpoints.append(resolve_endpoint(address))
        except InvalidAddressError as exc:
            raise UsageError(f"invalid value {address!r} for flag -a: {exc}") from exc

    config = RunConfig(endpoints=tuple(endpoints), command=tuple(command), **options)
    check_config(config)
    return config


def describe_failure(exc: BaseException) -> str:
    """User-facing text for a failed wait."""
    if isinstance(exc, WaitTimeoutError):
        return "timeout error"
    return str(exc)


def run(config: RunConfig) -> None:
    """Wait for all endpoints, then run the post-check command per the policy.

    When the command runs, its result replaces the wait result.

    Raises:
        WaitTimeoutError / InvalidAddressError: the wait failed and no command ran.
        subprocess.CalledProcessError: the command ran and exited non-zero.
        OSError: the command could not be started.
    """
    wait_error: Optional[Exception] = None
    try:
        with perf_span(
            "wait.total",
            tags={"endpoints": len(config.endpoints)},
            level=logging.DEBUG,
            logger=LOGGER,
        ):
            wait_for_endpoints(
                config.endpoints,
                connect_timeout=config.effective_connect_timeout,
                interval=config.interval,
                timeout=config.timeout,
            )
    except Exception as exc:  # noqa: BLE001 - reported, then handed to the policy
        wait_error = exc
        LOGGER.error("%s", describe_failure(exc))

    if config.command and config.policy.should_run(wait_error is None):
        LOGGER.debug("running command: %s", " ".join(config.command))
        try:
            subprocess.run(list(config.command), check=True)
        except subprocess.CalledProcessError as exc:
            LOGGER.error("command %s exited with status %s", config.command[0], exc.returncode)
            raise
        except OSError as exc:
            LOGGER.error("failed to run command %s: %s", config.command[0], exc)
            raise
        return

    if wait_error is not None:
        raise wait_error


__all__ = [
    "Policy",
    "RunConfig",
    "UsageError",
    "build_run_config",
    "check_config",
    "describe_failure",
    "run",
]
