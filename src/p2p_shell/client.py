"""p2p control-plane client.

Manages listeners (forward inbound peer connections for a protocol to a
local multiaddr) and streams (outbound connections to a peer's listener)
on a remote daemon. Every call is one request through the injected
RPCGateway; nothing is cached between calls.

Usage:
    async with create_client("http://127.0.0.1:5001") as client:
        await client.listener.open("/x/echo", "/ip4/127.0.0.1/tcp/8080")
        for listener in (await client.listener.list()).listeners:
            print(listener.protocol, listener.address)
        await client.listener.close_all()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from .address import validate_address
from .config import ClientConfig
from .errors import DecodeError
from .gateway import (
    HTTPGateway,
    MockGateway,
    RPCGateway,
    RPCRequest,
    create_mock_gateway,
)
from .selector import All, Selector, Single, selector_from_flags
from .types import Listener, ListenerList, Stream, StreamList

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class Operation(str, Enum):
    """Daemon RPC operations issued by this client."""

    LISTENER_OPEN = "p2p/listener/open"
    LISTENER_CLOSE = "p2p/listener/close"
    LISTENER_LIST = "p2p/listener/ls"
    STREAM_DIAL = "p2p/stream/dial"
    STREAM_CLOSE = "p2p/stream/close"
    STREAM_LIST = "p2p/stream/ls"


async def _send(gateway: RPCGateway, request: RPCRequest) -> None:
    """Send a request whose reply body carries nothing we need."""
    logger.debug(
        f"[{request.id}] {request.operation} args={request.args} options={request.options}"
    )
    response = await gateway.send(request)
    async with response:
        pass


async def _send_and_decode(
    gateway: RPCGateway,
    request: RPCRequest,
    model: type[ModelT],
) -> ModelT:
    """Send a request and decode its JSON reply into `model`."""
    logger.debug(
        f"[{request.id}] {request.operation} args={request.args} options={request.options}"
    )
    response = await gateway.send(request)
    async with response:
        data = await response.json()

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DecodeError(request.operation, str(e)) from e


async def _close(gateway: RPCGateway, operation: Operation, selector: Selector) -> None:
    request = RPCRequest.create(
        operation.value,
        *selector.args(),
        options=selector.options(),
    )
    await _send(gateway, request)


@dataclass
class ListenerAPI:
    """Listener operations."""

    _client: P2PClient

    async def open(self, protocol: str, address: str) -> Listener:
        """Forward inbound connections for `protocol` to `address`.

        Args:
            protocol: Application protocol name, forwarded as-is
            address: Target multiaddr, e.g. "/ip4/127.0.0.1/tcp/8080"

        Raises:
            InvalidAddress: `address` is not a multiaddr; nothing is sent
            RemoteError: The daemon refused (e.g. protocol already bound)
            DecodeError: The reply is not a listener
        """
        validate_address(address)
        request = RPCRequest.create(Operation.LISTENER_OPEN.value, protocol, address)
        return await _send_and_decode(self._client.gateway, request, Listener)

    async def close(self, protocol: str = "", close_all: bool = False) -> None:
        """Close one listener by protocol, or all of them.

        The target/flag pair is forwarded verbatim; combinations such as an
        empty protocol without `close_all` are left to the daemon.
        """
        await self.close_selector(selector_from_flags(protocol, close_all))

    async def close_selector(self, selector: Selector) -> None:
        """Close the listener(s) picked by `selector`."""
        await _close(self._client.gateway, Operation.LISTENER_CLOSE, selector)

    async def close_one(self, protocol: str) -> None:
        await self.close_selector(Single(protocol))

    async def close_all(self) -> None:
        await self.close_selector(All())

    async def list(self) -> ListenerList:
        """List all listeners currently registered on the daemon."""
        request = RPCRequest.create(Operation.LISTENER_LIST.value)
        return await _send_and_decode(self._client.gateway, request, ListenerList)


@dataclass
class StreamAPI:
    """Stream operations."""

    _client: P2PClient

    async def dial(self, peer_id: str, protocol: str, listener_address: str = "") -> Stream:
        """Open a stream to a peer's listener.

        Args:
            peer_id: Remote peer ID
            protocol: Protocol the peer's listener is registered for
            listener_address: Optional multiaddr hint for reaching the
                listener directly; omitted from the request when empty

        Raises:
            InvalidAddress: `listener_address` is not a multiaddr; nothing is sent
            RemoteError: The daemon refused (e.g. peer unreachable)
            DecodeError: The reply is not a stream
        """
        args = [peer_id, protocol]
        if listener_address:
            args.append(validate_address(listener_address))

        request = RPCRequest.create(Operation.STREAM_DIAL.value, *args)
        return await _send_and_decode(self._client.gateway, request, Stream)

    async def close(self, handler_id: str = "", close_all: bool = False) -> None:
        """Close one stream by handler ID, or all of them.

        Same pass-through rules as ListenerAPI.close.
        """
        await self.close_selector(selector_from_flags(handler_id, close_all))

    async def close_selector(self, selector: Selector) -> None:
        """Close the stream(s) picked by `selector`."""
        await _close(self._client.gateway, Operation.STREAM_CLOSE, selector)

    async def close_one(self, handler_id: str) -> None:
        await self.close_selector(Single(handler_id))

    async def close_all(self) -> None:
        await self.close_selector(All())

    async def list(self) -> StreamList:
        """List active streams with full endpoint details."""
        request = RPCRequest.create(
            Operation.STREAM_LIST.value,
            options={"headers": "true"},
        )
        return await _send_and_decode(self._client.gateway, request, StreamList)


@dataclass
class P2PClient:
    """p2p control-plane client.

    Works with any RPCGateway implementation:
    - HTTPGateway: the daemon's HTTP RPC API
    - MockGateway: for testing

    Usage:
        # Remote daemon
        async with create_client("http://127.0.0.1:5001") as client:
            listeners = await client.listener.list()

        # Testing
        gateway = create_mock_gateway()
        gateway.set_response("p2p/listener/ls", {"Listeners": []})
        client = P2PClient(gateway)
    """

    gateway: RPCGateway
    _owns_gateway: bool = field(default=True)

    @property
    def listener(self) -> ListenerAPI:
        """Listener operations."""
        return ListenerAPI(_client=self)

    @property
    def stream(self) -> StreamAPI:
        """Stream operations."""
        return StreamAPI(_client=self)

    async def close(self) -> None:
        """Close the gateway if this client owns it."""
        if self._owns_gateway:
            await self.gateway.close()

    async def __aenter__(self) -> P2PClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


# Factory functions


def create_client(
    base_url: str | None = None,
    timeout: float | None = None,
) -> P2PClient:
    """Create a client for a daemon's HTTP RPC API.

    Args:
        base_url: Daemon API URL (default: P2P_SHELL_API_URL or http://127.0.0.1:5001)
        timeout: Request timeout in seconds (default: P2P_SHELL_TIMEOUT or 30)

    Returns:
        P2PClient with an HTTPGateway
    """
    config = ClientConfig.from_env()
    if base_url:
        config.base_url = base_url.rstrip("/")
    if timeout is not None:
        config.timeout = timeout
    return P2PClient(gateway=HTTPGateway(config))


def create_test_client(gateway: MockGateway | None = None) -> P2PClient:
    """Create a client for testing.

    Args:
        gateway: Pre-configured mock gateway (creates new if None)

    Returns:
        P2PClient with a MockGateway
    """
    return P2PClient(
        gateway=gateway or create_mock_gateway(),
        _owns_gateway=gateway is None,
    )
