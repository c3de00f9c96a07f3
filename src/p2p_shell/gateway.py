"""RPC gateway between the client and the daemon.

The client builds an RPCRequest (operation name, positional arguments,
string options) and hands it to any RPCGateway. The gateway returns an
RPCResponse that owns the reply body; callers decode it inside
`async with` so the body is released on every exit path.

Implementations:
- HTTPGateway: the daemon's HTTP RPC API over httpx
- MockGateway: in-memory, records requests, for tests
"""

from __future__ import annotations

import json
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, Field

from .config import DEFAULT_API_URL, DEFAULT_TIMEOUT, ClientConfig
from .errors import DecodeError, RemoteError, TransportError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v0"


class RPCRequest(BaseModel):
    """A single remote operation.

    Example:
        {
            "id": "req_abc123",
            "operation": "p2p/listener/close",
            "args": ["/x/echo"],
            "options": {"all": "false"}
        }
    """

    id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")
    operation: str
    args: list[str] = Field(default_factory=list)
    options: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def create(
        cls,
        operation: str,
        *args: str,
        options: dict[str, str] | None = None,
    ) -> RPCRequest:
        """Factory method for creating requests."""
        return cls(operation=operation, args=list(args), options=options or {})


class RPCResponse(ABC):
    """Reply body of a successful request.

    Usable once. Always close it, preferably via `async with`.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    async def read(self) -> bytes:
        """Read the whole body."""
        ...

    @abstractmethod
    async def _release(self) -> None: ...

    async def json(self) -> Any:
        """Read and parse the body as JSON.

        Raises:
            DecodeError: If the body is not valid JSON
        """
        body = await self.read()
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(self.operation, str(e)) from e

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._release()

    async def __aenter__(self) -> RPCResponse:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


@runtime_checkable
class RPCGateway(Protocol):
    """Protocol for daemon gateways.

    A gateway turns one RPCRequest into one reply. It never retries.

    send() raises:
        RemoteError: The daemon rejected the request
        TransportError: The request or reply could not be transferred
    Cancellation (asyncio.CancelledError) propagates unwrapped.
    """

    async def send(self, request: RPCRequest) -> RPCResponse:
        """Send a request and return its reply body."""
        ...

    async def close(self) -> None:
        """Release gateway resources."""
        ...


def remote_error_from_body(
    operation: str,
    body: bytes,
    status_code: int | None = None,
) -> RemoteError:
    """Build a RemoteError from the daemon's error body.

    The daemon replies with {"Message": ..., "Code": ..., "Type": "error"}.
    Bodies that are not in that shape are reported verbatim.
    """
    text = body.decode("utf-8", errors="replace").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None

    if isinstance(data, dict) and isinstance(data.get("Message"), str):
        code = data.get("Code", 0)
        return RemoteError(
            data["Message"],
            code=code if isinstance(code, int) else 0,
            operation=operation,
        )

    message = text or (f"HTTP {status_code}" if status_code else "unknown error")
    return RemoteError(message, operation=operation)


# =============================================================================
# HTTP
# =============================================================================


class HTTPResponse(RPCResponse):
    """Reply body backed by a streamed httpx.Response."""

    def __init__(self, operation: str, response: httpx.Response) -> None:
        super().__init__(operation)
        self._response = response

    async def read(self) -> bytes:
        try:
            return await self._response.aread()
        except httpx.TransportError as e:
            raise TransportError(f"Failed to read {self.operation} reply: {e}") from e

    async def _release(self) -> None:
        await self._response.aclose()


class HTTPGateway:
    """Gateway over the daemon's HTTP RPC API.

    Each request is `POST {base_url}/api/v0/{operation}` with positional
    arguments as repeated `arg` query parameters and each option as its own
    query parameter.

    Usage:
        gateway = HTTPGateway(ClientConfig(base_url="http://127.0.0.1:5001"))
        async with await gateway.send(RPCRequest.create("p2p/listener/ls")) as resp:
            data = await resp.json()
        await gateway.close()
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._http_client = http_client
        self._owns_client = http_client is None

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout),
            )
            logger.info(f"HTTPGateway opened for {self.config.base_url}")
        return self._http_client

    @staticmethod
    def build_params(request: RPCRequest) -> list[tuple[str, str]]:
        """Encode positional args and options as query parameters."""
        params = [("arg", arg) for arg in request.args]
        params.extend(request.options.items())
        return params

    async def send(self, request: RPCRequest) -> RPCResponse:
        client = self._client()
        http_request = client.build_request(
            "POST",
            f"{API_PREFIX}/{request.operation}",
            params=self.build_params(request),
        )

        logger.debug(f"[{request.id}] POST {http_request.url}")
        try:
            response = await client.send(http_request, stream=True)
        except httpx.TransportError as e:
            raise TransportError(f"{request.operation} failed: {e}") from e

        if response.status_code >= 400:
            try:
                body = await response.aread()
            except httpx.TransportError as e:
                raise TransportError(f"Failed to read {request.operation} error: {e}") from e
            finally:
                await response.aclose()
            error = remote_error_from_body(request.operation, body, response.status_code)
            logger.warning(f"[{request.id}] {request.operation} rejected: {error.message}")
            raise error

        return HTTPResponse(request.operation, response)

    async def close(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            logger.info(f"HTTPGateway closed for {self.config.base_url}")
        self._http_client = None

    async def __aenter__(self) -> HTTPGateway:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


# =============================================================================
# Mock
# =============================================================================


class BufferedResponse(RPCResponse):
    """Reply body held in memory."""

    def __init__(self, operation: str, body: bytes) -> None:
        super().__init__(operation)
        self._body = body

    async def read(self) -> bytes:
        if self._closed:
            raise RuntimeError("Response already closed")
        return self._body

    async def _release(self) -> None:
        self._body = b""


class MockGateway:
    """Mock gateway for testing.

    Records every request and answers from canned replies. No I/O.

    Usage:
        gateway = MockGateway()
        gateway.set_response("p2p/listener/open", {"Protocol": "echo", "Address": "/ip4/0.0.0.0/tcp/0"})

        client = P2PClient(gateway)
        listener = await client.listener.open("echo", "/ip4/0.0.0.0/tcp/0")

        assert gateway.recorded_requests[0].operation == "p2p/listener/open"
    """

    def __init__(self) -> None:
        self._replies: dict[str, bytes | tuple[str, int] | BaseException] = {}
        self._recorded_requests: list[RPCRequest] = []
        self._responses: list[BufferedResponse] = []
        self.closed = False

    @property
    def recorded_requests(self) -> list[RPCRequest]:
        """Get all requests sent through this gateway."""
        return self._recorded_requests.copy()

    @property
    def issued_responses(self) -> list[BufferedResponse]:
        """Get all response bodies handed out, to check they were released."""
        return self._responses.copy()

    def set_response(self, operation: str, payload: Any) -> None:
        """Set the reply body for an operation.

        Args:
            operation: Operation name (e.g., "p2p/listener/ls")
            payload: bytes/str sent verbatim, anything else JSON-encoded
        """
        if isinstance(payload, bytes):
            body = payload
        elif isinstance(payload, str):
            body = payload.encode("utf-8")
        else:
            body = json.dumps(payload).encode("utf-8")
        self._replies[operation] = body

    def set_error(self, operation: str, message: str, code: int = 0) -> None:
        """Make the daemon reject an operation."""
        # Raised fresh on each send
        self._replies[operation] = (message, code)

    def set_exception(self, operation: str, exc: BaseException) -> None:
        """Raise an arbitrary exception (transport failure, cancellation) on send."""
        self._replies[operation] = exc

    def clear(self) -> None:
        """Clear recorded requests and replies."""
        self._recorded_requests.clear()
        self._responses.clear()
        self._replies.clear()

    async def send(self, request: RPCRequest) -> RPCResponse:
        self._recorded_requests.append(request)

        reply = self._replies.get(request.operation, b"{}")
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, tuple):
            message, code = reply
            raise RemoteError(message, code=code, operation=request.operation)

        response = BufferedResponse(request.operation, reply)
        self._responses.append(response)
        return response

    async def close(self) -> None:
        self.closed = True


# Factory functions


def create_http_gateway(
    base_url: str = DEFAULT_API_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> HTTPGateway:
    """Create an HTTP gateway for a daemon's RPC API.

    Args:
        base_url: Daemon API URL
        timeout: Request timeout in seconds

    Returns:
        HTTPGateway configured for the daemon
    """
    return HTTPGateway(ClientConfig(base_url=base_url, timeout=timeout))


def create_mock_gateway() -> MockGateway:
    """Create a mock gateway for testing."""
    return MockGateway()
