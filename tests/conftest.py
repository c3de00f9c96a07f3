"""Pytest configuration and shared fixtures."""

import pytest

from p2p_shell.client import P2PClient, create_test_client
from p2p_shell.gateway import MockGateway, create_mock_gateway


@pytest.fixture
def gateway() -> MockGateway:
    """Fresh in-memory gateway."""
    return create_mock_gateway()


@pytest.fixture
def client(gateway: MockGateway) -> P2PClient:
    """Client wired to the mock gateway."""
    return create_test_client(gateway)
