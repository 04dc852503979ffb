"""
Mock Firebolt service for testing without a real backend.

Provides an httpx MockTransport that plays the identity provider, the
control-plane API and the engine.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable
from unittest.mock import patch

import httpx

AUTH_HOST = "id.test.firebolt.io"
API_HOST = "api.test.firebolt.io"
ENGINE_HOST = "engine.test.firebolt.io"

AUTH_URL = f"https://{AUTH_HOST}"
API_ENDPOINT = f"https://{API_HOST}"
ENGINE_URL = f"https://{ENGINE_HOST}"

SELECT_ONE = {
    "meta": [{"name": "1", "type": "int"}],
    "data": [[1]],
    "rows": 1,
    "statistics": {"elapsed": 0.001, "rows_read": 1, "bytes_read": 1},
}


def login_payload(token: str = "access_token", expires_in: str = "3600") -> dict[str, str]:
    return {
        "access_token": token,
        "expires_in": expires_in,
        "refresh_token": "refresh_token",
        "token_type": "Bearer",
    }


@dataclass
class RecordedCall:
    """One request seen by the mock service."""
    method: str
    url: str
    params: dict[str, str]
    headers: dict[str, str]
    body: str

    @property
    def kind(self) -> str:
        host = httpx.URL(self.url).host
        if host == AUTH_HOST:
            return "login"
        if host == API_HOST:
            return "discovery"
        return "query"


@dataclass
class MockFireboltService:
    """
    Mock the Firebolt HTTP layer.

    Responses for logins and queries are served from queues; when a queue is
    empty a successful default is returned.

    Usage in tests:
        svc = MockFireboltService()
        svc.queue_query(401, text="token expired")

        with svc.patch_httpx():
            conn = connect(config)
            conn.execute("SELECT 1")

        assert svc.kinds() == ["login", "query", "login", "query"]
    """

    login_responses: list[httpx.Response] = field(default_factory=list)
    query_responses: list[httpx.Response] = field(default_factory=list)
    discovery_records: dict[str, dict[str, Any]] = field(default_factory=dict)

    default_login: dict[str, str] = field(default_factory=login_payload)
    default_result: dict[str, Any] = field(default_factory=lambda: dict(SELECT_ONE))

    call_log: list[RecordedCall] = field(default_factory=list)

    # Custom handlers for advanced testing, matched against the URL path
    custom_handlers: dict[str, Callable[[httpx.Request], httpx.Response]] = field(
        default_factory=dict
    )

    def queue_login(self, status_code: int = 200, json: Any = None, text: str | None = None) -> None:
        self.login_responses.append(_response(status_code, json, text))

    def queue_query(self, status_code: int = 200, json: Any = None, text: str | None = None) -> None:
        self.query_responses.append(_response(status_code, json, text))

    def add_discovery(self, path: str, record: dict[str, Any]) -> None:
        """Register a JSON record for a control-plane GET path."""
        self.discovery_records[path] = record

    def add_custom_handler(
        self, pattern: str, handler: Callable[[httpx.Request], httpx.Response]
    ) -> None:
        """Add a custom handler for a URL path pattern (regex)."""
        self.custom_handlers[pattern] = handler

    def _handle_request(self, request: httpx.Request) -> httpx.Response:
        call = RecordedCall(
            method=request.method,
            url=str(request.url),
            params=dict(request.url.params),
            headers=dict(request.headers),
            body=request.content.decode("utf-8"),
        )
        self.call_log.append(call)

        path = request.url.path
        for pattern, handler in self.custom_handlers.items():
            if re.match(pattern, path):
                return handler(request)

        if call.kind == "login":
            if path != "/oauth/token":
                return httpx.Response(404, text=f"Unknown endpoint: {path}")
            if self.login_responses:
                return self.login_responses.pop(0)
            return httpx.Response(200, json=self.default_login)

        if call.kind == "discovery":
            if path in self.discovery_records:
                return httpx.Response(200, json=self.discovery_records[path])
            return httpx.Response(404, json={"detail": f"Not found: {path}"})

        if self.query_responses:
            return self.query_responses.pop(0)
        return httpx.Response(200, json=self.default_result)

    def get_transport(self) -> httpx.MockTransport:
        """Get httpx MockTransport for use with httpx.Client."""
        return httpx.MockTransport(self._handle_request)

    def patch_httpx(self):
        """
        Context manager to patch httpx.Client to use mock transport.

        Usage:
            with mock_service.patch_httpx():
                conn.execute("SELECT 1")
        """
        transport = self.get_transport()

        original_init = httpx.Client.__init__

        def patched_init(self_client, *args, **kwargs):
            kwargs["transport"] = transport
            original_init(self_client, *args, **kwargs)

        return patch.object(httpx.Client, "__init__", patched_init)

    def get_calls(self, kind: str | None = None) -> list[RecordedCall]:
        """Get logged calls, optionally filtered by kind ("login", "discovery", "query")."""
        if kind is None:
            return list(self.call_log)
        return [c for c in self.call_log if c.kind == kind]

    def kinds(self) -> list[str]:
        return [c.kind for c in self.call_log]

    def clear_calls(self) -> None:
        """Clear the call log."""
        self.call_log.clear()


def _response(status_code: int, json: Any = None, text: str | None = None) -> httpx.Response:
    if json is not None:
        return httpx.Response(status_code, json=json)
    return httpx.Response(status_code, text=text or "")
