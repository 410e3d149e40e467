"""Centralized logging utilities for tcpwait runs.

Console output goes to stderr so it never mixes with the post-check command's
stdout. Quiet mode drops the console handler entirely; a per-run log file is
written only when ``LOG_DIR`` is configured.

This module also provides lightweight timing helpers:

- ``perf``: a decorator to time a function and log one structured line with
  the duration and success state.
- ``perf_span``: a context manager to time arbitrary code blocks and log the
  same structured line.
"""

import functools
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional

from tcpwait.config import AppConfig

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [run=%(run_id)s] %(message)s"
CONSOLE_LOG_FORMAT = "%(asctime)s.%(msecs)03d %(message)s"
CONSOLE_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


class _RunContextFilter(logging.Filter):
    """Inject the current run identifier into every log record."""

    def __init__(self, run_id: str) -> None:
        super().__init__()
        self._run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self._run_id
        return True


def _sanitize_run_id(run_id: str) -> str:
    """Convert a run identifier into a filesystem-friendly token."""
    return "".join(ch if ch.isalnum() or ch in ("-", "_") else "-" for ch in run_id)


def generate_run_id() -> str:
    """Return a default run identifier based on the current UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def configure_logging(
    config: AppConfig,
    run_id: Optional[str] = None,
    *,
    quiet: bool = False,
    verbose: bool = False,
    stream=None,
    fmt: str = DEFAULT_LOG_FORMAT,
) -> Optional[Path]:
    """Configure root logging handlers for the current run.

    Args:
        config: Application config providing level, app name and log directory.
        run_id: Optional run identifier; defaults to a UTC timestamp.
        quiet: Suppress console output entirely.
        verbose: Force DEBUG level so per-attempt probe traces are shown.
        stream: Console stream; defaults to ``sys.stderr``.
        fmt: Format for the log file handler.

    Returns:
        The log file path, or None when no log directory is configured.
    """
    resolved_run_id = run_id or generate_run_id()

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers: List[logging.Handler] = []
    log_path: Optional[Path] = None

    if not quiet:
        console = logging.StreamHandler(stream or sys.stderr)
        console.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
        handlers.append(console)

    if config.log_directory is not None:
        log_dir = config.log_directory
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / f"{config.app_name}-{_sanitize_run_id(resolved_run_id)}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt))
        handlers.append(file_handler)

    if not handlers:
        handlers.append(logging.NullHandler())

    for handler in handlers:
        handler.addFilter(_RunContextFilter(resolved_run_id))
        root_logger.addHandler(handler)

    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger.setLevel(level)

    return log_path


def _format_tags(tags: Optional[Mapping[str, Any]]) -> str:
    """Return a compact, stable string representation for tags."""
    if not tags:
        return "{}"
    items = ", ".join(f"{k}={tags[k]!r}" for k in sorted(tags))
    return "{" + items + "}"


def _log_perf(
    logger: logging.Logger,
    level: int,
    name: str,
    start_ns: int,
    success: bool,
    tags: Optional[Mapping[str, Any]],
) -> None:
    duration_ms = (time.monotonic_ns() - start_ns) / 1_000_000.0
    logger.log(
        level,
        "event=perf name=%s duration_ms=%.3f success=%s tags=%s",
        name,
        duration_ms,
        str(success).lower(),
        _format_tags(tags),
    )


def perf(
    name: Optional[str] = None,
    *,
    tags: Optional[Mapping[str, Any]] = None,
    level: int = logging.INFO,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator that logs execution time of a function.

    Args:
        name: Optional span name; defaults to ``<module>.<func>``.
        tags: Optional mapping of additional metadata to include in the log.
        level: Logging level to use (defaults to ``logging.INFO``).

    Returns:
        A callable that wraps the target function, logging a structured
        ``event=perf`` line with duration in milliseconds and success flag.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        span_name = name or f"{func.__module__}.{func.__qualname__}"
        logger = logging.getLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not logger.isEnabledFor(level):
                return func(*args, **kwargs)
            start_ns = time.monotonic_ns()
            try:
                result = func(*args, **kwargs)
            except Exception:
                _log_perf(logger, level, span_name, start_ns, False, tags)
                raise
            _log_perf(logger, level, span_name, start_ns, True, tags)
            return result

        return wrapper

    return decorator


class perf_span:
    """Context manager to time an arbitrary code block and log its duration.

    Example:
        with perf_span("wait.total", tags={"endpoints": 2}):
            wait_for_endpoints(...)
    """

    def __init__(
        self,
        name: str,
        *,
        tags: Optional[Mapping[str, Any]] = None,
        level: int = logging.INFO,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._name = name
        self._tags = tags or {}
        self._level = level
        self._logger = logger or logging.getLogger(__name__)
        self._start_ns: Optional[int] = None

    def __enter__(self) -> "perf_span":
        self._start_ns = time.monotonic_ns()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        start_ns = self._start_ns if self._start_ns is not None else time.monotonic_ns()
        _log_perf(self._logger, self._level, self._name, start_ns, exc_type is None, self._tags)
        # Do not suppress exceptions
        return False


__all__ = [
    "configure_logging",
    "generate_run_id",
    "DEFAULT_LOG_FORMAT",
    "perf",
    "perf_span",
]
