"""
Failure taxonomy for a remote info scrape.

Every way a scrape can go wrong maps onto one of three errors. The
collector catches all of them the same way, the `kind` just tells the
log line (and anyone debugging) which one it was.
"""

from __future__ import annotations

from typing import Optional


class RemoteInfoError(Exception):
    """Base class for anything that fails a single scrape."""

    kind = "unknown"


class FetchError(RemoteInfoError):
    """The endpoint couldn't be reached (DNS, refused, timeout, TLS)."""

    kind = "fetch"

    def __init__(
        self,
        cause: Exception,
        scheme: str,
        host: str,
        port: Optional[int],
        path: str,
    ):
        self.cause = cause
        self.scheme = scheme
        self.host = host
        self.port = port
        self.path = path
        port_str = "" if port is None else str(port)
        super().__init__(
            f"failed to get remote info from {scheme}://{host}:{port_str}{path}: {cause}"
        )


class StatusError(RemoteInfoError):
    """The endpoint answered, but not with a 200."""

    kind = "status"

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"HTTP request failed with code {status_code}")


class DecodeError(RemoteInfoError):
    """The body wasn't JSON, or didn't have the shape we expect."""

    kind = "decode"
