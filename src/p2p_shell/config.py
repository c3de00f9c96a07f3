"""Client configuration.

Defaults point at a local daemon's RPC API. Environment variables override
the defaults:

- P2P_SHELL_API_URL: daemon RPC base URL
- P2P_SHELL_TIMEOUT: request timeout in seconds
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_API_URL = "http://127.0.0.1:5001"
DEFAULT_TIMEOUT = 30.0

ENV_API_URL = "P2P_SHELL_API_URL"
ENV_TIMEOUT = "P2P_SHELL_TIMEOUT"


@dataclass
class ClientConfig:
    """Configuration for the daemon RPC gateway."""

    base_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a config from defaults and environment overrides.

        Raises:
            ValueError: If P2P_SHELL_TIMEOUT is not a positive number
        """
        base_url = os.environ.get(ENV_API_URL) or DEFAULT_API_URL

        timeout = DEFAULT_TIMEOUT
        if raw_timeout := os.environ.get(ENV_TIMEOUT):
            try:
                timeout = float(raw_timeout)
            except ValueError as e:
                raise ValueError(f"{ENV_TIMEOUT} must be a number, got {raw_timeout!r}") from e
            if timeout <= 0:
                raise ValueError(f"{ENV_TIMEOUT} must be positive, got {raw_timeout!r}")

        return cls(base_url=base_url.rstrip("/"), timeout=timeout)
