"""p2p-shell CLI.

Usage:
    p2p-shell listener open /x/echo /ip4/127.0.0.1/tcp/8080
    p2p-shell listener close /x/echo
    p2p-shell listener close --all
    p2p-shell listener ls [--format json]

    p2p-shell stream dial <peer-id> /x/echo [/ip4/1.2.3.4/tcp/4001]
    p2p-shell stream close <handler-id>
    p2p-shell stream close --all
    p2p-shell stream ls [--format json]

    p2p-shell --api http://127.0.0.1:5001 --timeout 10 listener ls
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click

from .client import P2PClient
from .config import ClientConfig
from .errors import P2PShellError
from .gateway import HTTPGateway
from .selector import All, Selector, Single, selector_from_flags

T = TypeVar("T")

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"


def truncate(text: str | None, max_len: int = 50) -> str:
    """Truncate text for display."""
    if not text:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _run(ctx: click.Context, action: Callable[[P2PClient], Awaitable[T]]) -> T:
    """Run one client call, reporting client errors on stderr."""
    gateway = ctx.obj.get("gateway")
    config: ClientConfig = ctx.obj["config"]

    async def runner() -> T:
        if gateway is not None:
            client = P2PClient(gateway=gateway, _owns_gateway=False)
        else:
            client = P2PClient(gateway=HTTPGateway(config))
        async with client:
            return await action(client)

    try:
        return asyncio.run(runner())
    except P2PShellError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def describe_close(selector: Selector, kind: str) -> str:
    """Describe the close request that was sent for `selector`."""
    if isinstance(selector, Single):
        return f"Closed {selector.target}"
    if isinstance(selector, All):
        return f"Closed all {kind}"
    flag = selector.options()["all"]
    return f"Close sent for {kind} (daemon-defined: target={selector.target!r}, all={flag})"


@click.group()
@click.option("--api", "api_url", help="Daemon RPC API URL (env: P2P_SHELL_API_URL)")
@click.option("--timeout", type=float, help="Request timeout in seconds (env: P2P_SHELL_TIMEOUT)")
@click.option("--verbose", "-v", is_flag=True, help="Log requests to stderr")
@click.pass_context
def main(ctx: click.Context, api_url: str | None, timeout: float | None, verbose: bool) -> None:
    """Manage p2p listeners and streams on a running daemon."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = ClientConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    if api_url:
        config.base_url = api_url.rstrip("/")
    if timeout is not None:
        if timeout <= 0:
            raise click.BadParameter("must be positive", param_hint="--timeout")
        config.timeout = timeout

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Listener Commands
# =============================================================================


@main.group()
def listener() -> None:
    """Manage listeners (inbound forwarding rules)."""


@listener.command("open")
@click.argument("protocol")
@click.argument("address")
@click.pass_context
def listener_open(ctx: click.Context, protocol: str, address: str) -> None:
    """Forward inbound PROTOCOL connections to ADDRESS.

    Examples:

        p2p-shell listener open /x/echo /ip4/127.0.0.1/tcp/8080
    """
    result = _run(ctx, lambda client: client.listener.open(protocol, address))
    click.echo(f"Listening: {result.protocol} -> {result.address}")


@listener.command("close")
@click.argument("protocol", required=False, default="")
@click.option("--all", "-a", "close_all", is_flag=True, help="Close all listeners")
@click.pass_context
def listener_close(ctx: click.Context, protocol: str, close_all: bool) -> None:
    """Close the listener for PROTOCOL, or all listeners.

    Examples:

        p2p-shell listener close /x/echo
        p2p-shell listener close --all
    """
    selector = selector_from_flags(protocol, close_all)
    _run(ctx, lambda client: client.listener.close_selector(selector))
    click.echo(describe_close(selector, "listeners"))


@listener.command("ls")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
@click.pass_context
def listener_ls(ctx: click.Context, output_format: str) -> None:
    """List listeners."""
    result = _run(ctx, lambda client: client.listener.list())

    if output_format == FORMAT_JSON:
        _echo_json([item.model_dump(by_alias=True) for item in result.listeners])
        return

    if not result.listeners:
        click.echo("No listeners.")
        return

    click.echo(f"{'Protocol':<30} {'Address':<45}")
    click.echo("-" * 76)
    for item in result.listeners:
        click.echo(f"{truncate(item.protocol, 30):<30} {truncate(item.address, 45):<45}")

    click.echo(f"\nTotal: {len(result.listeners)} listener(s)")


# =============================================================================
# Stream Commands
# =============================================================================


@main.group()
def stream() -> None:
    """Manage streams (outbound connections to peers' listeners)."""


@stream.command("dial")
@click.argument("peer_id")
@click.argument("protocol")
@click.argument("listener_address", required=False, default="")
@click.pass_context
def stream_dial(ctx: click.Context, peer_id: str, protocol: str, listener_address: str) -> None:
    """Dial PEER_ID's listener for PROTOCOL.

    LISTENER_ADDRESS, when given, is used to reach the peer's listener
    directly instead of resolving it.

    Examples:

        p2p-shell stream dial QmPeer /x/echo
        p2p-shell stream dial QmPeer /x/echo /ip4/127.0.0.1/tcp/9090
    """
    result = _run(ctx, lambda client: client.stream.dial(peer_id, protocol, listener_address))
    click.echo(f"Dialed: {result.protocol} via {result.address}")


@stream.command("close")
@click.argument("handler_id", required=False, default="")
@click.option("--all", "-a", "close_all", is_flag=True, help="Close all streams")
@click.pass_context
def stream_close(ctx: click.Context, handler_id: str, close_all: bool) -> None:
    """Close the stream HANDLER_ID, or all streams.

    Examples:

        p2p-shell stream close 3
        p2p-shell stream close --all
    """
    selector = selector_from_flags(handler_id, close_all)
    _run(ctx, lambda client: client.stream.close_selector(selector))
    click.echo(describe_close(selector, "streams"))


@stream.command("ls")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
@click.pass_context
def stream_ls(ctx: click.Context, output_format: str) -> None:
    """List active streams."""
    result = _run(ctx, lambda client: client.stream.list())

    if output_format == FORMAT_JSON:
        _echo_json([item.model_dump(by_alias=True) for item in result.streams])
        return

    if not result.streams:
        click.echo("No streams.")
        return

    click.echo(f"{'ID':<6} {'Protocol':<20} {'Local':<30} {'Remote':<30}")
    click.echo("-" * 89)
    for item in result.streams:
        click.echo(
            f"{item.handler_id:<6} {truncate(item.protocol, 20):<20} "
            f"{truncate(item.local_address, 30):<30} {truncate(item.remote_address, 30):<30}"
        )

    click.echo(f"\nTotal: {len(result.streams)} stream(s)")


if __name__ == "__main__":
    main()
