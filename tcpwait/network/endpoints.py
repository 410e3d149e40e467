"""Endpoint address parsing and resolution.

Endpoints are plain ``host:port`` strings. ``split_host_port`` validates the
syntax; ``resolve_endpoint`` additionally resolves the host and returns the
normalised ``ip:port`` form used for the rest of the run.
"""

import logging
import socket
from typing import List, Optional, Tuple

LOGGER = logging.getLogger(__name__)

MAX_PORT = 65535

AddressInfo = Tuple[int, int, int, str, tuple]


class InvalidAddressError(ValueError):
    """The address is malformed or its host name cannot be resolved.

    Retrying cannot fix it, so probes classify it as terminal.
    """

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"address {address}: {reason}")
        self.address = address
        self.reason = reason


def _parse_port(port_text: str) -> int:
    if port_text.isdigit():
        port = int(port_text)
        if port > MAX_PORT:
            raise InvalidAddressError(port_text, "invalid port")
        return port
    if not port_text:
        raise InvalidAddressError(port_text, "invalid port")
    try:
        return socket.getservbyname(port_text, "tcp")
    except OSError:
        raise InvalidAddressError(port_text, "unknown port") from None


def split_host_port(address: str) -> Tuple[Optional[str], int]:
    """Split ``host:port`` (or ``[ipv6]:port``) into host and numeric port.

    An empty host (``":8080"``) returns None, meaning the local system.

    Raises:
        InvalidAddressError: when the port is missing, malformed or out of range.
    """
    text = (address or "").strip()
    if text.startswith("["):
        end = text.find("]")
        if end == -1:
            raise InvalidAddressError(text, "missing ']' in address")
        host = text[1:end]
        rest = text[end + 1 :]
        if not rest.startswith(":"):
            raise InvalidAddressError(text, "missing port in address")
        port_text = rest[1:]
    else:
        if ":" not in text:
            raise InvalidAddressError(text, "missing port in address")
        host, port_text = text.rsplit(":", 1)
        if ":" in host:
            raise InvalidAddressError(text, "too many colons in address")

    return (host or None), _parse_port(port_text)


def lookup(host: Optional[str], port: int) -> List[AddressInfo]:
    """Resolve ``host``/``port`` into TCP socket address tuples.

    Raises:
        InvalidAddressError: when name resolution fails.
    """
    try:
        return socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except socket.gaierror as exc:
        raise InvalidAddressError(host or "", f"lookup failed: {exc.strerror or exc}") from exc


def format_address(host: str, port: int) -> str:
    """Join host and port, bracketing IPv6 literals."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def resolve_endpoint(address: str) -> str:
    """Validate and resolve ``address``, returning its ``ip:port`` form.

    IPv4 results are preferred when a name resolves to both families.
    """
    host, port = split_host_port(address)
    infos = lookup(host, port)
    if not infos:
        raise InvalidAddressError(address, "no addresses found")
    chosen = next((info for info in infos if info[0] == socket.AF_INET), infos[0])
    resolved = format_address(chosen[4][0], port)
    if resolved != address:
        LOGGER.debug("resolved %s to %s", address, resolved)
    return resolved


__all__ = [
    "InvalidAddressError",
    "format_address",
    "lookup",
    "resolve_endpoint",
    "split_host_port",
]
