"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Config file search paths (in order of precedence, last wins)
CONFIG_SEARCH_PATHS = [
    Path.home() / ".firebolt" / "client.yaml",  # User-level defaults
    Path(".firebolt.yaml"),  # Project-level overrides
]

DEFAULT_AUTH_URL = "https://id.app.firebolt.io"
DEFAULT_API_ENDPOINT = "https://api.app.firebolt.io"


def _env(name: str, default: str | None = None) -> str | None:
    return os.environ.get(name, default)


@dataclass
class ClientConfig:
    """
    Configuration for the firebolt client.

    Precedence (lowest to highest):
    1. Defaults
    2. Environment variables (FIREBOLT_*)
    3. ~/.firebolt/client.yaml
    4. .firebolt.yaml (project root)
    5. Constructor arguments
    """
    # Service account credentials
    client_id: str | None = field(
        default_factory=lambda: _env("FIREBOLT_CLIENT_ID")
    )
    client_secret: str | None = field(
        default_factory=lambda: _env("FIREBOLT_CLIENT_SECRET")
    )

    # Identity provider used for login
    auth_url: str = field(
        default_factory=lambda: _env("FIREBOLT_AUTH_URL", DEFAULT_AUTH_URL)
    )
    audience: str | None = field(
        default_factory=lambda: _env("FIREBOLT_AUDIENCE")
    )

    # Control-plane API used for account/engine discovery
    api_endpoint: str = field(
        default_factory=lambda: _env("FIREBOLT_API_ENDPOINT", DEFAULT_API_ENDPOINT)
    )

    # Query target
    engine_url: str | None = field(
        default_factory=lambda: _env("FIREBOLT_ENGINE_URL")
    )
    engine_name: str | None = field(
        default_factory=lambda: _env("FIREBOLT_ENGINE_NAME")
    )
    database: str | None = field(
        default_factory=lambda: _env("FIREBOLT_DATABASE")
    )
    account_id: str | None = field(
        default_factory=lambda: _env("FIREBOLT_ACCOUNT_ID")
    )
    account_name: str | None = field(
        default_factory=lambda: _env("FIREBOLT_ACCOUNT_NAME")
    )

    # Request timeout (seconds)
    timeout: float = field(
        default_factory=lambda: float(_env("FIREBOLT_TIMEOUT", "30"))
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientConfig:
        """Create config from dictionary, falling back to environment variables."""
        return cls(
            client_id=data.get("client_id", _env("FIREBOLT_CLIENT_ID")),
            client_secret=data.get("client_secret", _env("FIREBOLT_CLIENT_SECRET")),
            auth_url=data.get("auth_url", _env("FIREBOLT_AUTH_URL", DEFAULT_AUTH_URL)),
            audience=data.get("audience", _env("FIREBOLT_AUDIENCE")),
            api_endpoint=data.get("api_endpoint", _env("FIREBOLT_API_ENDPOINT", DEFAULT_API_ENDPOINT)),
            engine_url=data.get("engine_url", _env("FIREBOLT_ENGINE_URL")),
            engine_name=data.get("engine_name", _env("FIREBOLT_ENGINE_NAME")),
            database=data.get("database", _env("FIREBOLT_DATABASE")),
            account_id=data.get("account_id", _env("FIREBOLT_ACCOUNT_ID")),
            account_name=data.get("account_name", _env("FIREBOLT_ACCOUNT_NAME")),
            timeout=float(data.get("timeout", _env("FIREBOLT_TIMEOUT", "30"))),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> ClientConfig:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def load(cls, config_file: str | Path | None = None) -> ClientConfig:
        """
        Load config with auto-discovery.

        Search order (last wins):
        1. ~/.firebolt/client.yaml
        2. .firebolt.yaml
        3. Explicit config_file argument
        """
        import yaml

        merged: dict[str, Any] = {}

        for path in CONFIG_SEARCH_PATHS:
            if path.exists():
                with open(path, "r") as f:
                    data = yaml.safe_load(f) or {}
                merged.update(data)

        if config_file:
            with open(config_file, "r") as f:
                data = yaml.safe_load(f) or {}
            merged.update(data)

        return cls.from_dict(merged)
