"""Unit tests for stream operations."""

from __future__ import annotations

import asyncio

import pytest

from p2p_shell.client import P2PClient
from p2p_shell.errors import DecodeError, InvalidAddress, RemoteError, TransportError
from p2p_shell.gateway import MockGateway

PEER_ID = "12D3KooWRemotePeer"

STREAMS_REPLY = {
    "Streams": [
        {
            "HandlerID": "0",
            "Protocol": "/x/echo",
            "LocalPeer": "12D3KooWLocalPeer",
            "LocalAddress": "/ip4/127.0.0.1/tcp/8080",
            "RemotePeer": PEER_ID,
            "RemoteAddress": "/ip4/10.0.0.2/tcp/4001",
        },
        {
            "HandlerID": "1",
            "Protocol": "/x/chat",
            "LocalPeer": "12D3KooWLocalPeer",
            "LocalAddress": "/ip4/127.0.0.1/tcp/9090",
            "RemotePeer": PEER_ID,
            "RemoteAddress": "/ip4/10.0.0.2/tcp/4001",
        },
    ]
}


class TestStreamDial:
    @pytest.mark.asyncio
    async def test_dial_without_listener_address(
        self, client: P2PClient, gateway: MockGateway
    ) -> None:
        """An empty listener address is omitted, not sent as ""."""
        gateway.set_response(
            "p2p/stream/dial",
            {"Protocol": "/x/echo", "Address": "/ip4/127.0.0.1/tcp/51234"},
        )

        stream = await client.stream.dial(PEER_ID, "/x/echo")

        [request] = gateway.recorded_requests
        assert request.operation == "p2p/stream/dial"
        assert request.args == [PEER_ID, "/x/echo"]
        assert request.options == {}
        assert stream.protocol == "/x/echo"
        assert stream.address == "/ip4/127.0.0.1/tcp/51234"

    @pytest.mark.asyncio
    async def test_dial_with_listener_address(
        self, client: P2PClient, gateway: MockGateway
    ) -> None:
        gateway.set_response(
            "p2p/stream/dial",
            {"Protocol": "/x/echo", "Address": "/ip4/1.2.3.4/tcp/4001"},
        )

        await client.stream.dial(PEER_ID, "/x/echo", "/ip4/1.2.3.4/tcp/4001")

        [request] = gateway.recorded_requests
        assert request.args == [PEER_ID, "/x/echo", "/ip4/1.2.3.4/tcp/4001"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", ["1.2.3.4:4001", "/", "//"])
    async def test_dial_invalid_listener_address_sends_nothing(
        self, client: P2PClient, gateway: MockGateway, address: str
    ) -> None:
        with pytest.raises(InvalidAddress):
            await client.stream.dial(PEER_ID, "/x/echo", address)

        assert gateway.recorded_requests == []

    @pytest.mark.asyncio
    async def test_dial_remote_error(self, client: P2PClient, gateway: MockGateway) -> None:
        gateway.set_error("p2p/stream/dial", "failed to dial: no addresses")

        with pytest.raises(RemoteError, match="no addresses"):
            await client.stream.dial(PEER_ID, "/x/echo")

    @pytest.mark.asyncio
    async def test_dial_decode_error(self, client: P2PClient, gateway: MockGateway) -> None:
        gateway.set_response("p2p/stream/dial", "null")

        with pytest.raises(DecodeError):
            await client.stream.dial(PEER_ID, "/x/echo")

    @pytest.mark.asyncio
    async def test_dial_transport_error_propagates(
        self, client: P2PClient, gateway: MockGateway
    ) -> None:
        gateway.set_exception("p2p/stream/dial", TransportError("connection refused"))

        with pytest.raises(TransportError, match="connection refused"):
            await client.stream.dial(PEER_ID, "/x/echo")

    @pytest.mark.asyncio
    async def test_dial_cancellation_not_wrapped(
        self, client: P2PClient, gateway: MockGateway
    ) -> None:
        gateway.set_exception("p2p/stream/dial", asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await client.stream.dial(PEER_ID, "/x/echo")


class TestStreamClose:
    @pytest.mark.asyncio
    async def test_close_single(self, client: P2PClient, gateway: MockGateway) -> None:
        await client.stream.close("3")

        [request] = gateway.recorded_requests
        assert request.operation == "p2p/stream/close"
        assert request.args == ["3"]
        assert request.options == {"all": "false"}

    @pytest.mark.asyncio
    async def test_close_all(self, client: P2PClient, gateway: MockGateway) -> None:
        await client.stream.close(close_all=True)

        [request] = gateway.recorded_requests
        assert request.args == []
        assert request.options == {"all": "true"}

    @pytest.mark.asyncio
    async def test_close_empty_handler_without_all_is_forwarded(
        self, client: P2PClient, gateway: MockGateway
    ) -> None:
        await client.stream.close("", close_all=False)

        [request] = gateway.recorded_requests
        assert request.args == []
        assert request.options == {"all": "false"}

    @pytest.mark.asyncio
    async def test_close_handler_and_all_forwarded_verbatim(
        self, client: P2PClient, gateway: MockGateway
    ) -> None:
        await client.stream.close("3", close_all=True)

        [request] = gateway.recorded_requests
        assert request.args == ["3"]
        assert request.options == {"all": "true"}

    @pytest.mark.asyncio
    async def test_close_one_and_close_all(self, client: P2PClient, gateway: MockGateway) -> None:
        await client.stream.close_one("7")
        await client.stream.close_all()

        one, everything = gateway.recorded_requests
        assert (one.args, one.options) == (["7"], {"all": "false"})
        assert (everything.args, everything.options) == ([], {"all": "true"})

    @pytest.mark.asyncio
    async def test_close_remote_error(self, client: P2PClient, gateway: MockGateway) -> None:
        gateway.set_error("p2p/stream/close", "no such stream")

        with pytest.raises(RemoteError, match="no such stream"):
            await client.stream.close("99")


class TestStreamList:
    @pytest.mark.asyncio
    async def test_list_always_requests_headers(
        self, client: P2PClient, gateway: MockGateway
    ) -> None:
        gateway.set_response("p2p/stream/ls", {"Streams": []})

        await client.stream.list()

        [request] = gateway.recorded_requests
        assert request.operation == "p2p/stream/ls"
        assert request.args == []
        assert request.options == {"headers": "true"}

    @pytest.mark.asyncio
    async def test_list_decodes_records(self, client: P2PClient, gateway: MockGateway) -> None:
        gateway.set_response("p2p/stream/ls", STREAMS_REPLY)

        result = await client.stream.list()

        assert [record.handler_id for record in result.streams] == ["0", "1"]
        assert result.streams[1].protocol == "/x/chat"
        assert result.streams[1].local_address == "/ip4/127.0.0.1/tcp/9090"
        assert result.streams[1].remote_peer == PEER_ID

    @pytest.mark.asyncio
    async def test_list_malformed_json(self, client: P2PClient, gateway: MockGateway) -> None:
        gateway.set_response("p2p/stream/ls", b"\xff\xfe")

        with pytest.raises(DecodeError):
            await client.stream.list()

    @pytest.mark.asyncio
    async def test_list_remote_error(self, client: P2PClient, gateway: MockGateway) -> None:
        gateway.set_error("p2p/stream/ls", "libp2p stream mounting not enabled")

        with pytest.raises(RemoteError):
            await client.stream.list()
