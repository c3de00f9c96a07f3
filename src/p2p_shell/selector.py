"""Close selectors for listeners and streams.

The daemon's close commands take an optional positional target and an
`all` flag. Selectors make the intended combination explicit:

- Single(target): close one resource
- All(): close every resource
- Passthrough(target, close_all): any other combination, forwarded as-is

Passthrough exists because the daemon, not this client, defines what an
empty target without `all`, or a target together with `all`, means.
"""

from __future__ import annotations

from dataclasses import dataclass


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


@dataclass(frozen=True)
class Single:
    """Target exactly one listener (by protocol) or stream (by handler ID)."""

    target: str

    def args(self) -> list[str]:
        return [self.target]

    def options(self) -> dict[str, str]:
        return {"all": _format_bool(False)}


@dataclass(frozen=True)
class All:
    """Target every listener or stream."""

    def args(self) -> list[str]:
        return []

    def options(self) -> dict[str, str]:
        return {"all": _format_bool(True)}


@dataclass(frozen=True)
class Passthrough:
    """Raw target/flag pair whose meaning is left to the daemon."""

    target: str = ""
    close_all: bool = False

    def args(self) -> list[str]:
        return [self.target] if self.target else []

    def options(self) -> dict[str, str]:
        return {"all": _format_bool(self.close_all)}


Selector = Single | All | Passthrough


def selector_from_flags(target: str, close_all: bool) -> Selector:
    """Map the target/flag form onto a selector.

    Examples:
        selector_from_flags("echo", False)  -> Single("echo")
        selector_from_flags("", True)       -> All()
        selector_from_flags("", False)      -> Passthrough("", False)
        selector_from_flags("echo", True)   -> Passthrough("echo", True)
    """
    if target and not close_all:
        return Single(target)
    if not target and close_all:
        return All()
    return Passthrough(target, close_all)
