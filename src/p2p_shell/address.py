"""Multiaddr validation.

Addresses are checked locally before they are sent anywhere. Parsing is
delegated to the multiaddr codec; the client only reacts to accept/reject.
"""

from __future__ import annotations

from multiaddr import Multiaddr
from multiaddr.exceptions import Error as MultiaddrError

from .errors import InvalidAddress


def validate_address(address: str) -> str:
    """Check that `address` parses as a multiaddr.

    Args:
        address: Candidate address, e.g. "/ip4/127.0.0.1/tcp/4001"

    Returns:
        The input string, unchanged.

    Raises:
        InvalidAddress: If the codec rejects the string.
    """
    if not address:
        raise InvalidAddress(address, "empty address")

    try:
        parsed = Multiaddr(address)
    except (MultiaddrError, ValueError) as e:
        raise InvalidAddress(address, str(e)) from e

    # "/" and "//" parse to a multiaddr with no segments
    if not list(parsed.protocols()):
        raise InvalidAddress(address, "empty multiaddr")

    return address


def is_valid_address(address: str) -> bool:
    """Return True if `address` parses as a multiaddr."""
    try:
        validate_address(address)
    except InvalidAddress:
        return False
    return True
