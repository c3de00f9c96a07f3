"""Unit tests for daemon reply models."""

import pytest
from pydantic import ValidationError

from p2p_shell.types import Listener, ListenerList, Stream, StreamList, StreamRecord

STREAM_RECORD = {
    "HandlerID": "3",
    "Protocol": "/x/echo",
    "LocalPeer": "QmLocal",
    "LocalAddress": "/ip4/127.0.0.1/tcp/8080",
    "RemotePeer": "QmRemote",
    "RemoteAddress": "/ip4/10.0.0.2/tcp/4001",
}


class TestListener:
    def test_from_daemon_keys(self) -> None:
        listener = Listener.model_validate({"Protocol": "echo", "Address": "/ip4/0.0.0.0/tcp/0"})

        assert listener.protocol == "echo"
        assert listener.address == "/ip4/0.0.0.0/tcp/0"

    def test_from_field_names(self) -> None:
        listener = Listener(protocol="echo", address="/ip4/0.0.0.0/tcp/0")

        assert listener.model_dump(by_alias=True) == {
            "Protocol": "echo",
            "Address": "/ip4/0.0.0.0/tcp/0",
        }

    def test_missing_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Listener.model_validate({"Protocol": "echo"})

    def test_is_read_only(self) -> None:
        listener = Listener(protocol="echo", address="/ip4/0.0.0.0/tcp/0")
        with pytest.raises(ValidationError):
            listener.protocol = "other"  # type: ignore[misc]


class TestListenerList:
    def test_preserves_daemon_order(self) -> None:
        result = ListenerList.model_validate(
            {
                "Listeners": [
                    {"Protocol": "b", "Address": "/ip4/127.0.0.1/tcp/2"},
                    {"Protocol": "a", "Address": "/ip4/127.0.0.1/tcp/1"},
                    {"Protocol": "b", "Address": "/ip4/127.0.0.1/tcp/3"},
                ]
            }
        )

        assert [item.protocol for item in result.listeners] == ["b", "a", "b"]

    def test_null_listeners_is_empty(self) -> None:
        assert ListenerList.model_validate({"Listeners": None}).listeners == []

    def test_missing_listeners_is_empty(self) -> None:
        assert ListenerList.model_validate({}).listeners == []

    def test_find(self) -> None:
        result = ListenerList(
            listeners=[
                Listener(protocol="a", address="/ip4/127.0.0.1/tcp/1"),
                Listener(protocol="b", address="/ip4/127.0.0.1/tcp/2"),
            ]
        )

        found = result.find("b")
        assert found is not None
        assert found.address == "/ip4/127.0.0.1/tcp/2"
        assert result.find("c") is None


class TestStream:
    def test_from_daemon_keys(self) -> None:
        stream = Stream.model_validate({"Protocol": "/x/echo", "Address": "/ip4/1.2.3.4/tcp/4001"})

        assert stream.protocol == "/x/echo"
        assert stream.address == "/ip4/1.2.3.4/tcp/4001"


class TestStreamList:
    def test_full_record(self) -> None:
        result = StreamList.model_validate({"Streams": [STREAM_RECORD]})

        record = result.streams[0]
        assert record.handler_id == "3"
        assert record.protocol == "/x/echo"
        assert record.local_peer == "QmLocal"
        assert record.local_address == "/ip4/127.0.0.1/tcp/8080"
        assert record.remote_peer == "QmRemote"
        assert record.remote_address == "/ip4/10.0.0.2/tcp/4001"

    def test_record_missing_headers_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StreamRecord.model_validate({"HandlerID": "3"})

    def test_null_streams_is_empty(self) -> None:
        assert StreamList.model_validate({"Streams": None}).streams == []

    def test_find(self) -> None:
        result = StreamList.model_validate({"Streams": [STREAM_RECORD]})

        assert result.find("3") is not None
        assert result.find("4") is None
