"""Reply models for the daemon's p2p commands.

The daemon speaks PascalCase JSON ("Protocol", "HandlerID", ...). Models
expose snake_case attributes and accept either spelling on input.
All models are read-only snapshots of daemon state at call time.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _DaemonModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Listener(_DaemonModel):
    """A forwarding rule: connections for `protocol` go to `address`."""

    protocol: str = Field(alias="Protocol")
    address: str = Field(alias="Address")


class ListenerList(_DaemonModel):
    """Listeners in daemon-reported order."""

    listeners: list[Listener] = Field(default_factory=list, alias="Listeners")

    @field_validator("listeners", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        # The daemon encodes an empty set as null
        return [] if value is None else value

    def find(self, protocol: str) -> Listener | None:
        """Return the first listener registered for `protocol`, if any."""
        for listener in self.listeners:
            if listener.protocol == protocol:
                return listener
        return None


class Stream(_DaemonModel):
    """Result of dialing a peer's listener.

    `address` is the listener address that was dialed, not a local endpoint.
    The stream's handler ID is only discoverable through stream listing.
    """

    protocol: str = Field(alias="Protocol")
    address: str = Field(alias="Address")


class StreamRecord(_DaemonModel):
    """One active stream as reported by the daemon."""

    handler_id: str = Field(alias="HandlerID")
    protocol: str = Field(alias="Protocol")
    local_peer: str = Field(alias="LocalPeer")
    local_address: str = Field(alias="LocalAddress")
    remote_peer: str = Field(alias="RemotePeer")
    remote_address: str = Field(alias="RemoteAddress")


class StreamList(_DaemonModel):
    """Active streams in daemon-reported order."""

    streams: list[StreamRecord] = Field(default_factory=list, alias="Streams")

    @field_validator("streams", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def find(self, handler_id: str) -> StreamRecord | None:
        """Return the stream with `handler_id`, if any."""
        for record in self.streams:
            if record.handler_id == handler_id:
                return record
        return None
