"""Parsing and formatting of duration flags such as ``5s``, ``100ms`` or ``1m30s``."""

import re
from typing import Dict

_UNIT_SECONDS: Dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_PLAIN_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_duration(text: str) -> float:
    """Parse a duration string into seconds.

    Accepts a sequence of decimal numbers with unit suffixes (``ns``, ``us``,
    ``ms``, ``s``, ``m``, ``h``), e.g. ``"1h30m"`` or ``"1.5s"``, as well as a
    bare number which is read as seconds. ``"0"`` is zero.

    Raises:
        ValueError: for empty, negative or malformed input.
    """
    value = (text or "").strip()
    if not value:
        raise ValueError("invalid duration: empty string")
    if value.startswith("-"):
        raise ValueError(f"invalid duration {text!r}: must not be negative")
    if value.startswith("+"):
        value = value[1:]

    if _PLAIN_NUMBER.fullmatch(value):
        return float(value)

    total = 0.0
    pos = 0
    while pos < len(value):
        match = _COMPONENT.match(value, pos)
        if not match:
            raise ValueError(f"invalid duration {text!r}")
        number, unit = match.groups()
        total += float(number) * _UNIT_SECONDS[unit]
        pos = match.end()
    return total


def format_duration(seconds: float) -> str:
    """Render seconds compactly, e.g. ``0.25`` -> ``"250ms"``, ``90`` -> ``"1m30s"``."""
    if seconds <= 0:
        return "0s"
    if seconds < 1:
        return f"{seconds * 1000:g}ms"
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs:g}s")
    return "".join(parts)


__all__ = ["parse_duration", "format_duration"]
