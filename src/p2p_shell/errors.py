"""Error taxonomy for the p2p control-plane client.

Every failed operation raises exactly one of these:
- InvalidAddress: local pre-flight check, nothing was sent
- RemoteError: the daemon rejected a well-formed request
- TransportError: the request or its reply never made it across
- DecodeError: the daemon replied with success but the body has the wrong shape
"""

from __future__ import annotations


class P2PShellError(Exception):
    """Base class for all client errors."""

    pass


class InvalidAddress(P2PShellError, ValueError):
    """Address failed multiaddr parsing before any request was sent."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"invalid multiaddr {address!r}: {reason}")
        self.address = address
        self.reason = reason


class RemoteError(P2PShellError):
    """The daemon reported failure for a request."""

    def __init__(
        self,
        message: str,
        code: int = 0,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.operation = operation


class TransportError(P2PShellError, ConnectionError):
    """The gateway could not deliver a request or receive its reply."""

    pass


class DecodeError(P2PShellError, ValueError):
    """A success reply did not match the expected shape."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(f"cannot decode {operation} reply: {reason}")
        self.operation = operation
        self.reason = reason
