"""Runs one SQL statement against an engine over HTTP."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

import httpx

from .auth import AuthSession, Credential
from .discovery import EngineDiscovery
from .errors import AuthError, DecodeError, QueryError, ServerError
from .session import SessionState, parse_set_statement

if TYPE_CHECKING:
    from .config import ClientConfig

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "JSON_Compact"

# First attempt plus one attempt after re-authenticating
MAX_AUTH_ATTEMPTS = 2


def normalize_engine_url(url: str) -> str:
    """Engine endpoints are often published without a scheme."""
    if "://" not in url:
        return f"https://{url}"
    return url


@dataclass
class ConnectionContext:
    """Target of queries on one connection, plus its session options."""
    engine_url: str | None = None
    database: str | None = None
    account_id: str | None = None
    session_state: SessionState = field(default_factory=SessionState)


@dataclass
class QueryExecutor:
    """
    Sends SQL to an engine with the current credential attached.

    A 401 response invalidates the credential and the request is sent once
    more with a fresh one; a second 401 is an AuthError. Transport errors are
    never retried.

    ``SET`` statements are not sent. Their option is stored in the context's
    SessionState and replayed ahead of every later statement.

    A context without an engine URL has it looked up by database once; the
    lookup runs under a lock so concurrent first queries share it.
    """
    auth: AuthSession
    config: ClientConfig
    discovery: EngineDiscovery | None = None

    _engine_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.discovery is None:
            self.discovery = EngineDiscovery(self, self.config)

    def execute(
        self,
        ctx: ConnectionContext,
        sql: str,
        timeout: float | None = None,
    ) -> str | None:
        """
        Execute a statement and return the raw response body.

        Args:
            ctx: Connection target and session options
            sql: Final SQL text, parameters already substituted
            timeout: Overrides the configured timeout for this call

        Returns:
            Response body text, or None for a ``SET`` statement

        Raises:
            QueryError: Request could not be sent, or no engine to send it to
            AuthError: Login failed, or still unauthorized after re-login
            ServerError: Any other non-success status
        """
        option = parse_set_statement(sql)
        if option is not None:
            ctx.session_state.add(option)
            return None

        if not sql.strip():
            raise QueryError("Query text is empty")

        url = self._resolve_engine_url(ctx, timeout)

        params: dict[str, str] = {}
        if ctx.database:
            params["database"] = ctx.database
        if ctx.account_id:
            params["account_id"] = ctx.account_id
        params["output_format"] = OUTPUT_FORMAT

        body = ctx.session_state.apply(sql)
        response = self._send_authorized("POST", url, params=params, content=body, timeout=timeout)
        return response.text

    def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Authorized GET returning parsed JSON, with the same 401 handling as execute()."""
        response = self._send_authorized("GET", url, params=params, timeout=timeout)
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Response from {url} is not valid JSON") from e

    def _resolve_engine_url(self, ctx: ConnectionContext, timeout: float | None = None) -> str:
        if not ctx.engine_url:
            with self._engine_lock:
                # another caller may have resolved it while we waited
                if not ctx.engine_url:
                    if not ctx.database:
                        raise QueryError("No engine URL configured and no database to look one up for")
                    ctx.engine_url = self.discovery.engine_url_by_database(
                        ctx.database, ctx.account_id, timeout=timeout
                    )
        return normalize_engine_url(ctx.engine_url)

    def _send_authorized(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        content: str | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        already_retried = False

        for _ in range(MAX_AUTH_ATTEMPTS):
            credential = self.auth.get_valid_token(timeout)
            response = self._send(method, url, credential, params, content, timeout)

            if response.status_code != 401:
                break

            if already_retried:
                raise AuthError(
                    f"The operation is unauthorized: {url} returned 401 after "
                    f"re-authenticating: {response.text}",
                    url=url,
                    status_code=401,
                    body=response.text,
                )

            logger.warning(f"Unauthorized response from {url}, logging in again")
            self.auth.invalidate(credential)
            already_retried = True

        if not response.is_success:
            raise ServerError(response.status_code, response.text, url)
        return response

    def _send(
        self,
        method: str,
        url: str,
        credential: Credential,
        params: dict[str, Any] | None,
        content: str | None,
        timeout: float | None,
    ) -> httpx.Response:
        headers = {"Authorization": credential.authorization_header}
        logger.debug(f"{method} {url}")
        try:
            with httpx.Client(timeout=self.config.timeout if timeout is None else timeout) as client:
                return client.request(
                    method,
                    url,
                    headers=headers,
                    params=params if params else None,
                    content=content,
                )
        except httpx.TransportError as e:
            raise QueryError(f"Request to {url} failed: {e}", url=url) from e
