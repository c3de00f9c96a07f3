"""p2p-shell - control-plane client for a daemon's p2p listeners and streams.

Listeners forward inbound peer connections for a protocol to a local
multiaddr. Streams are outbound connections to a peer's listener.
"""

from .address import is_valid_address, validate_address
from .client import (
    ListenerAPI,
    Operation,
    P2PClient,
    StreamAPI,
    create_client,
    create_test_client,
)
from .config import ClientConfig
from .errors import DecodeError, InvalidAddress, P2PShellError, RemoteError, TransportError
from .gateway import (
    HTTPGateway,
    MockGateway,
    RPCGateway,
    RPCRequest,
    RPCResponse,
    create_http_gateway,
    create_mock_gateway,
)
from .selector import All, Passthrough, Selector, Single, selector_from_flags
from .types import Listener, ListenerList, Stream, StreamList, StreamRecord

__all__ = [
    # Client
    "P2PClient",
    "ListenerAPI",
    "StreamAPI",
    "Operation",
    "create_client",
    "create_test_client",
    "ClientConfig",
    # Gateway
    "RPCGateway",
    "RPCRequest",
    "RPCResponse",
    "HTTPGateway",
    "MockGateway",
    "create_http_gateway",
    "create_mock_gateway",
    # Selectors
    "Selector",
    "Single",
    "All",
    "Passthrough",
    "selector_from_flags",
    # Addresses
    "validate_address",
    "is_valid_address",
    # Types
    "Listener",
    "ListenerList",
    "Stream",
    "StreamRecord",
    "StreamList",
    # Errors
    "P2PShellError",
    "InvalidAddress",
    "RemoteError",
    "TransportError",
    "DecodeError",
]
