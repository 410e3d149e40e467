"""Wait orchestration: the concurrent endpoint waiter and the run policy."""

from tcpwait.jobs.runner import (
    Policy,
    RunConfig,
    UsageError,
    build_run_config,
    check_config,
    describe_failure,
    run,
)
from tcpwait.jobs.waiter import wait_for_endpoints

__all__ = [
    "Policy",
    "RunConfig",
    "UsageError",
    "build_run_config",
    "check_config",
    "describe_failure",
    "run",
    "wait_for_endpoints",
]
