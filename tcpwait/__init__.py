"""tcpwait: wait for TCP endpoints to become reachable, then run a command."""

__version__ = "1.0.0"
