#!/usr/bin/env python3
"""CLI wrapper to wait for TCP endpoints from a source checkout."""

from tcpwait.cli import main

if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
